"""Entry point wrapper for ``python -m digital_composer``.

When the package is executed as a module the code here simply forwards
execution to :func:`digital_composer.cli.main`, the same function the
installed ``digital-composer`` console script calls.

Example
-------
The following invocation writes a 32 note composition learned from the first
track of ``song.mid``::

    python -m digital_composer song.mid 0 --length 32 --output out.mid
"""

from .cli import main

if __name__ == "__main__":
    main()
