from .nauty import (
    NAUTY_LABELG,
    labelg_available,
    labelg_args,
    labelg_canonical,
)

__all__ = [
    "NAUTY_LABELG",
    "labelg_available",
    "labelg_args",
    "labelg_canonical",
]
