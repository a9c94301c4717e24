from .base_backend import BaseBackend
from .nix_backend import NixBackend

BACKENDS = {
    NixBackend.name: NixBackend,
}


def get_backend(name="nix", **options):
    """Return a backend instance for the given name."""
    try:
        backend_cls = BACKENDS[name]
    except KeyError:
        raise ValueError(f"Unknown build backend '{name}'. Available: {', '.join(sorted(BACKENDS))}") from None
    return backend_cls(**options)
