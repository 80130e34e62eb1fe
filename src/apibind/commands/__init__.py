"""Built-in CLI sub-commands for apibind.

* :mod:`~apibind.commands.generate` -- write the bindings for one profile.
* :mod:`~apibind.commands.profiles` -- list the configured profiles.
* :mod:`~apibind.commands.inspect` -- preview operations, schemas and enums
  without writing anything.

``inspect`` exports a :class:`typer.Typer` sub-application; the single
commands export plain callback functions registered on the root app.
"""
