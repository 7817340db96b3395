import tempfile
import unittest
from pathlib import Path

import numpy as np

from pool_kit.postprocess import PoolPostConfig
from pool_kit.runtime import find_project_root, load_pipeline, resolve_path

try:
    import onnx
    from onnx import TensorProto, helper
    import onnxruntime  # noqa: F401
    HAVE_ORT = True
except ImportError:
    HAVE_ORT = False

# Identity graph: 3 * 10 * 10 inputs == (1 class + 4) * 60 anchors
S = 10
A = 60


def _write_identity_model(path: Path) -> None:
    inp = helper.make_tensor_value_info("images", TensorProto.FLOAT, [1, 3, S, S])
    out = helper.make_tensor_value_info("output0", TensorProto.FLOAT, [1, 3, S, S])
    node = helper.make_node("Identity", ["images"], ["output0"])
    graph = helper.make_graph([node], "pool_identity", [inp], [out])
    model = helper.make_model(graph, opset_imports=[helper.make_opsetid("", 13)])
    model.ir_version = 7
    onnx.save(model, str(path))


class TestPaths(unittest.TestCase):
    def _tmpdir(self) -> Path:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        return Path(tmpdir.name).resolve()

    def test_resolve_path_explicit_root(self) -> None:
        root = self._tmpdir()
        self.assertEqual(resolve_path("models/pool.onnx", root=root), root / "models" / "pool.onnx")

    def test_resolve_path_absolute_untouched(self) -> None:
        root = self._tmpdir()
        absolute = root / "pool.onnx"
        self.assertEqual(resolve_path(absolute, root="/somewhere/else"), absolute)

    def test_find_project_root_walks_up(self) -> None:
        root = self._tmpdir()
        (root / "pyproject.toml").write_text("", encoding="utf-8")
        nested = root / "a" / "b"
        nested.mkdir(parents=True)
        self.assertEqual(find_project_root(nested), root)

    def test_find_project_root_from_file(self) -> None:
        root = self._tmpdir()
        (root / ".git").mkdir()
        f = root / "models" / "pool.onnx"
        f.parent.mkdir()
        f.write_bytes(b"")
        self.assertEqual(find_project_root(f), root)


class TestLoadPipeline(unittest.TestCase):
    def _tmpdir(self) -> Path:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        return Path(tmpdir.name)

    def test_non_onnx_rejected(self) -> None:
        with self.assertRaises(ValueError):
            load_pipeline("model.pt", root=self._tmpdir())

    def test_missing_model(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_pipeline("missing.onnx", root=self._tmpdir())

    @unittest.skipUnless(HAVE_ORT, "onnx/onnxruntime not installed")
    def test_end_to_end_with_onnx_model(self) -> None:
        root = self._tmpdir()
        _write_identity_model(root / "pool.onnx")
        pipe = load_pipeline(
            "pool.onnx",
            root=root,
            post_cfg=PoolPostConfig(model_input_size=S, grid_size=A),
            onnx_providers=["CPUExecutionProvider"],
        )
        self.assertEqual(pipe.backend_name, "onnxruntime")

        # all-black: every class score is 0
        self.assertEqual(pipe(bytes(S * S * 4)), [])

        # all-white: 60 identical boxes with score 1.0 collapse to one
        dets = pipe(bytes([255]) * (S * S * 4))
        self.assertEqual(len(dets), 1)
        self.assertEqual(dets[0].confidence, 1.0)
        self.assertEqual(dets[0].as_xyxy(), (0.5, 0.5, 1.5, 1.5))


@unittest.skipUnless(HAVE_ORT, "onnx/onnxruntime not installed")
class TestOnnxRuntimeBackend(unittest.TestCase):
    def setUp(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        self.model_path = Path(tmpdir.name) / "pool.onnx"
        _write_identity_model(self.model_path)

    def test_flat_float32_output(self) -> None:
        from pool_kit.backends.onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig

        backend = OnnxRuntimeBackend(self.model_path, OnnxRuntimeBackendConfig(providers=["CPUExecutionProvider"]))
        blob = np.arange(3 * S * S, dtype=np.float64).reshape(1, 3, S, S) / 1000.0
        out = backend.infer(blob)
        self.assertEqual(out.dtype, np.float32)
        self.assertEqual(out.shape, (3 * S * S,))
        self.assertTrue(np.allclose(out, blob.reshape(-1)))

    def test_unknown_io_names_rejected(self) -> None:
        from pool_kit.backends.onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig

        with self.assertRaises(ValueError):
            OnnxRuntimeBackend(self.model_path, OnnxRuntimeBackendConfig(input_name="input"))
        with self.assertRaises(ValueError):
            OnnxRuntimeBackend(self.model_path, OnnxRuntimeBackendConfig(output_name="output"))

    def test_missing_model(self) -> None:
        from pool_kit.backends.onnxruntime_backend import OnnxRuntimeBackend

        with self.assertRaises(FileNotFoundError):
            OnnxRuntimeBackend(self.model_path.with_name("nope.onnx"))


if __name__ == "__main__":
    unittest.main()
