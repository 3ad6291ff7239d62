from tfpipe.artifacts.store import ArtifactMetadata, ArtifactStore

__all__ = ["ArtifactMetadata", "ArtifactStore"]
