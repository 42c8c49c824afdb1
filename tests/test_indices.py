"""
Tests for the index arithmetic and the ping-pong buffer roles.
"""

import pytest

from pyfastscan.general_algorithms import PingPong, ilog2, ilog2ceil, next_pow2, num_blocks


@pytest.mark.parametrize("n, expected", [(1, 0), (2, 1), (3, 2), (4, 2), (5, 3), (8, 3), (9, 4), (1 << 20, 20), ((1 << 20) + 1, 21)])
def test_ilog2ceil(n, expected):
    assert ilog2ceil(n) == expected


@pytest.mark.parametrize("n, expected", [(1, 0), (2, 1), (3, 1), (8, 3), (9, 3)])
def test_ilog2(n, expected):
    assert ilog2(n) == expected


@pytest.mark.parametrize("n, expected", [(0, 1), (1, 1), (2, 2), (3, 4), (17, 32), (256, 256), (257, 512), (1 << 30, 1 << 30)])
def test_next_pow2(n, expected):
    assert next_pow2(n) == expected


def test_log_of_non_positive_raises():
    with pytest.raises(ValueError):
        ilog2ceil(0)
    with pytest.raises(ValueError):
        ilog2(-3)


def test_num_blocks():
    assert num_blocks(1, 256) == 1
    assert num_blocks(256, 256) == 1
    assert num_blocks(257, 256) == 2
    assert num_blocks(0, 256) == 0


def test_pingpong_swaps_roles():
    a, b = object(), object()
    pp = PingPong(a, b)
    assert pp.src is a and pp.dst is b and not pp.flipped
    pp.swap()
    assert pp.src is b and pp.dst is a and pp.flipped
    pp.swap()
    assert pp.src is a and not pp.flipped


def test_pingpong_rejects_aliasing():
    a = object()
    with pytest.raises(ValueError):
        PingPong(a, a)
