from sharpcap.runtime.manifest import RunManifest

__all__ = ["RunManifest"]
