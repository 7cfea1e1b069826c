"""Built-in CLI sub-commands for prc.

This package groups the Typer sub-command modules that form the CLI's
command tree:

* :mod:`~prcapi.commands.server` -- server status, players, queue,
  vehicles, bans, staff, in-game commands and stats.
* :mod:`~prcapi.commands.logs` -- join, kill, command and mod call logs.
* :mod:`~prcapi.commands.cache` -- inspect and clear the response cache.
* :mod:`~prcapi.commands.config` -- view and modify the settings file.

Multi-command groups export a :class:`typer.Typer` sub-application; single
commands are plain callbacks registered directly on the root app.
"""
