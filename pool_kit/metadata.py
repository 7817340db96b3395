from __future__ import annotations

from typing import Dict, Tuple


def load_class_names(metadata_path: str) -> Tuple[str, ...]:
    """
    Load the ordered class table from an Ultralytics-style `metadata.yaml`.

        names:
          0: pool

    Ids must be contiguous from 0; the result is indexed by class id.
    """

    names: Dict[int, str] = {}
    in_names = False

    with open(metadata_path, "r", encoding="utf-8") as f:
        for raw in f:
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            if line == "names:":
                in_names = True
                continue
            if not in_names:
                continue
            # a new top-level key ends the block
            if not raw[:1].isspace():
                break

            if ":" not in line:
                continue
            left, right = line.split(":", 1)
            left = left.strip()
            right = right.strip().strip("'").strip('"')
            if not left.isdigit():
                continue
            names[int(left)] = right

    if not names:
        raise ValueError(f"No class names found in {metadata_path}")
    if sorted(names) != list(range(len(names))):
        raise ValueError(f"Class ids in {metadata_path} must be contiguous from 0, got {sorted(names)}")
    return tuple(names[i] for i in range(len(names)))
