import numpy as np
import pytest

import porempfa as pm


def test_isotropic():
    k = pm.SecondOrderTensor(np.array([1.0, 2.0]))
    assert k.num_cells == 2
    assert np.allclose(k.cell_tensor(1), 2 * np.eye(2))


def test_full_tensor():
    k = pm.SecondOrderTensor(np.array([2.0]), kyy=np.array([3.0]), kxy=np.array([1.0]))
    assert np.allclose(k.cell_tensor(0), [[2, 1], [1, 3]])


def test_zero_tensor_is_allowed():
    k = pm.SecondOrderTensor(np.array([0.0, 1.0]))
    assert np.array_equal(k.is_zero(), [True, False])


@pytest.mark.parametrize(
    "kxx, kyy, kxy",
    [
        (np.array([-1.0]), None, None),
        (np.array([1.0]), np.array([-1.0]), None),
        (np.array([1.0]), np.array([1.0]), np.array([2.0])),
    ],
)
def test_not_positive_semidefinite(kxx, kyy, kxy):
    with pytest.raises(ValueError):
        pm.SecondOrderTensor(kxx, kyy=kyy, kxy=kxy)


def test_size_mismatch():
    with pytest.raises(ValueError):
        pm.SecondOrderTensor(np.ones(2), kyy=np.ones(3))


def test_copy():
    k = pm.SecondOrderTensor(np.ones(3))
    c = k.copy()
    c.values[0, 0, 0] = 5
    assert k.values[0, 0, 0] == 1


def test_permeability_units():
    k = pm.SecondOrderTensor(np.full(2, 100 * pm.MILLIDARCY))
    assert np.isclose(k.cell_tensor(0)[0, 0], 9.869233e-14)
    assert np.isclose(pm.KELVIN_to_CELSIUS(pm.CELSIUS_to_KELVIN(20.0)), 20.0)
