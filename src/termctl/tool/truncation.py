"""Output bounding — cap file, log and command text before it reaches the client."""

from __future__ import annotations

import enum
import os
import re
import tempfile

MAX_BYTES = 50 * 1024  # 50KB
SPILL_DIR = "~/.termctl/tool-output"


class Keep(enum.StrEnum):
    """Which end of an oversized text survives."""

    HEAD = "head"  # Documents read from the top
    TAIL = "tail"  # Logs and command output: the newest lines are at the end


def bound_output(
    text: str,
    source: str,
    keep: Keep = Keep.TAIL,
    max_bytes: int = MAX_BYTES,
    spill: bool = True,
) -> str:
    """Cut ``text`` down to ``max_bytes`` of UTF-8, on whole lines where possible.

    The cut side gets a one-line notice naming ``source`` and, with
    ``spill``, the file holding the full text.
    """
    encoded = text.encode("utf-8", errors="replace")
    if len(encoded) <= max_bytes:
        return text

    if keep is Keep.HEAD:
        kept = encoded[:max_bytes].decode("utf-8", errors="ignore")
        cut = kept.rfind("\n")
        if cut > 0:
            kept = kept[: cut + 1]
    else:
        kept = encoded[-max_bytes:].decode("utf-8", errors="ignore")
        cut = kept.find("\n")
        if 0 <= cut < len(kept) - 1:
            kept = kept[cut + 1 :]

    shown = len(kept.encode("utf-8"))
    which = "first" if keep is Keep.HEAD else "last"
    notice = f"[{source}: showing {which} {shown} of {len(encoded)} bytes"
    if spill:
        notice += f"; full text saved to {_spill(text, source)}"
    notice += "]"

    if keep is Keep.HEAD:
        sep = "" if kept.endswith("\n") else "\n"
        return f"{kept}{sep}{notice}"
    return f"{notice}\n{kept}"


def _spill(text: str, source: str) -> str:
    """Write the full text under SPILL_DIR and return the path."""
    spill_dir = os.path.expanduser(SPILL_DIR)
    os.makedirs(spill_dir, exist_ok=True)
    stem = re.sub(r"[^A-Za-z0-9._-]+", "_", source).strip("_")[:40] or "output"
    fd, path = tempfile.mkstemp(prefix=f"{stem}-", suffix=".txt", dir=spill_dir)
    with os.fdopen(fd, "w") as f:
        f.write(text)
    return path
