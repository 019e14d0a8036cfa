from haul_core.artifacts.qr import Artifact, QRArtifactStore, encode_image

__all__ = ["Artifact", "QRArtifactStore", "encode_image"]
