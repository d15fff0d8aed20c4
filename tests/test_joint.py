import io

import numpy as np
import pytest

from gef.joint import Joint


def _joint():
    matrix = np.arange(16, dtype=np.float32).reshape(4, 4)
    return Joint(name_id=7, inv_bind_pose=matrix, parent=2)


def test_write_size():
    stream = io.BytesIO()
    _joint().write(stream)
    assert len(stream.getvalue()) == 72


def test_write_header_bytes():
    stream = io.BytesIO()
    Joint(name_id=7, parent=-1).write(stream)
    assert stream.getvalue()[:8] == b"\x07\x00\x00\x00\xff\xff\xff\xff"


def test_round_trip():
    joint = _joint()
    stream = io.BytesIO()
    joint.write(stream)
    stream.seek(0)
    loaded = Joint.read(stream)
    assert loaded.name_id == joint.name_id
    assert loaded.parent == joint.parent
    assert np.array_equal(loaded.inv_bind_pose, joint.inv_bind_pose)


def test_default_is_root_with_identity():
    joint = Joint()
    assert joint.parent == -1
    assert np.array_equal(joint.inv_bind_pose, np.eye(4))


def test_short_stream_raises():
    stream = io.BytesIO()
    _joint().write(stream)
    truncated = io.BytesIO(stream.getvalue()[:40])
    with pytest.raises(EOFError):
        Joint.read(truncated)