"""Built-in CLI commands for specguard.

Each module exports a plain callback registered directly on the root app in
:mod:`specguard.app`:

* :mod:`~specguard.commands.compare` -- diff two documents and fail on
  breaking changes.
* :mod:`~specguard.commands.validate` -- validate a data file against a
  component schema or an operation's response schema.
* :mod:`~specguard.commands.normalize` -- rewrite component schemas into one
  nullable dialect.

Every command turns a :class:`~specguard.exceptions.SpecguardError` into an
error message on stderr and an exit with the error's ``exit_code``.
"""
