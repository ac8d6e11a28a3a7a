"""Entry point for the Pagestream CLI.

Allows running the package directly with ``python -m pagestream``.
"""

from .cli import main

if __name__ == "__main__":  # pragma: no cover
    main()
