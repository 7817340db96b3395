"""
Inference collaborators for `PoolPipeline`.

Importing `pool_kit` never pulls in an inference runtime; `load_pipeline`
imports the ONNX Runtime backend only when a model is actually loaded.
"""
