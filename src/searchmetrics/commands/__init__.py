"""Built-in CLI commands for searchmetrics.

Modules:
    request: ``get``, ``post`` and ``token`` -- talk to the API.
    profile: ``profile add/list/show/remove`` -- manage connection profiles.
    config: ``config show/set`` -- edit the global configuration.
"""
