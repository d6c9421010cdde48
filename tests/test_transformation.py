"""
Unit tests for the kernel transformation space.
"""

import math

import pytest
import torch as th

from gplab.gp import GaussianProcess, ZeroMean, ConstantMean
from gplab.transformation import KernelTransformationSpace, KernelTransformation
from gplab.transformation.utils import compute_displacement, transform_points, sample_transformation
from gplab.regulariser.parameter import L2Regulariser
from gplab.utils import DiscreteDomain, GaussianKernel, Unsupported, is_supported
from gplab.utils import DimensionMismatchError, PreconditionError

NUM_PARAMETERS = 5


@pytest.fixture
def domain():
    return DiscreteDomain(-5.0, 0.1, 100)


@pytest.fixture
def space(domain):
    gp = GaussianProcess(ZeroMean(), GaussianKernel(2.0))
    return KernelTransformationSpace(domain, NUM_PARAMETERS, gp)


def test_space_dimensionality(space):
    assert space.parameters_dimensionality == NUM_PARAMETERS
    assert len(space.eigen_pairs) == NUM_PARAMETERS
    assert space.identity_parameters().shape == (NUM_PARAMETERS,)


@pytest.mark.parametrize("length", [0, NUM_PARAMETERS - 1, NUM_PARAMETERS + 1])
def test_parameter_dimension_mismatch(space, length):
    with pytest.raises(DimensionMismatchError):
        space.apply(th.ones(length))


def test_parameter_matrix_is_rejected(space):
    with pytest.raises(DimensionMismatchError):
        space.apply(th.ones(1, NUM_PARAMETERS))


def test_identity(space, domain):
    """Zero mean and zero parameters give the identity."""
    transformation = space.apply(space.identity_parameters())

    assert th.allclose(transformation(domain.points), domain.points)
    for x in domain.points[::10]:
        assert transformation.evaluate(x).item() == pytest.approx(x.item())


def test_evaluate_formula(domain):
    gp = GaussianProcess(ConstantMean(0.3), GaussianKernel(2.0))
    space = KernelTransformationSpace(domain, NUM_PARAMETERS, gp)
    alpha = [1.0, -0.5, 0.25, 2.0, -1.0]

    transformation = space(alpha)

    for x in [-4.2, 0.0, 1.37, 4.9]:
        expected = x + 0.3
        for a, (eigenvalue, eigenfunction) in zip(alpha, space.eigen_pairs):
            expected += a*math.sqrt(eigenvalue)*eigenfunction(x).item()

        assert transformation.evaluate(x).item() == pytest.approx(expected)


def test_derivative_independent_of_parameters(space):
    """The transformation is linear in its parameters."""
    first = space.apply(th.randn(NUM_PARAMETERS, generator=th.Generator().manual_seed(0), dtype=th.float64))
    second = space.apply(th.randn(NUM_PARAMETERS, generator=th.Generator().manual_seed(1), dtype=th.float64))

    for x in [-3.0, 0.55, 2.0]:
        derivative = first.derivative_wrt_parameters(x)

        assert derivative.shape == (1, NUM_PARAMETERS)
        assert th.equal(derivative, second.derivative_wrt_parameters(x))


def test_derivative_entries(space):
    x = 1.25
    derivative = space.apply(space.identity_parameters()).derivative_wrt_parameters(x)

    for i, (eigenvalue, eigenfunction) in enumerate(space.eigen_pairs):
        assert derivative[0, i].item() == pytest.approx(math.sqrt(eigenvalue)*eigenfunction(x).item())


def test_derivative_matches_autograd(space, domain):
    transformation = space.apply(th.ones(NUM_PARAMETERS, dtype=th.float64))

    transformation(domain.points).sum().backward()

    expected = space.derivative_wrt_parameters(domain.points).sum(dim=0)
    assert th.allclose(transformation.trans_parameters.grad, expected)


def test_recover_parameters_by_least_squares(space, domain):
    """The Jacobian is all an optimizer needs to recover the parameters of a deformation."""
    alpha = th.tensor([0.5, -1.0, 2.0, 0.1, -0.3], dtype=th.float64)
    target = space.apply(alpha)(domain.points)

    jacobian = space.derivative_wrt_parameters(domain.points)
    solution = th.linalg.lstsq(jacobian, (target - domain.points).detach()).solution[:, 0]

    assert th.allclose(solution, alpha, atol=1e-6)


def test_optimise_with_torch(space, domain):
    """Fit a transformation to a target deformation with a torch optimizer."""
    target = space.apply(th.tensor([0.5, -1.0, 0.2, 0.1, -0.3], dtype=th.float64))(domain.points).detach()

    transformation = space.apply(space.identity_parameters())
    regulariser = L2Regulariser()
    regulariser.set_weight(1e-6)

    optimizer = th.optim.Adam(transformation.parameters(), lr=0.05)

    def closure():
        optimizer.zero_grad()
        loss = (transformation(domain.points) - target).pow(2).mean() + \
            regulariser(transformation.named_parameters())
        loss.backward()
        return loss

    initial_loss = closure().item()
    for _ in range(200):
        loss = optimizer.step(closure)

    assert loss.item() < 0.1*initial_loss


def test_unsupported_operations(space):
    transformation = space.apply(space.identity_parameters())

    inverse = transformation.inverse_transform()
    derivative = transformation.spatial_derivative(0.5)

    assert isinstance(inverse, Unsupported)
    assert isinstance(derivative, Unsupported)
    assert not inverse
    assert not is_supported(derivative)
    assert inverse.operation == "inverse_transform"
    assert derivative.operation == "spatial_derivative"
    assert is_supported(transformation.evaluate(0.5))


def test_domain_dimension(domain):
    gp = GaussianProcess(ZeroMean(), GaussianKernel(2.0))

    with pytest.raises(PreconditionError):
        KernelTransformationSpace(DiscreteDomain([0.0, 0.0], [1.0, 1.0], [4, 4]), 3, gp)
    with pytest.raises(PreconditionError):
        KernelTransformationSpace(DiscreteDomain(0.0, 1.0, 4), 5, gp)


def test_space_from_point_list():
    gp = GaussianProcess(ZeroMean(), GaussianKernel(1.0))
    space = KernelTransformationSpace([0.0, 0.5, 1.0, 1.5, 2.0], 2, gp)

    assert space.parameters_dimensionality == 2


def test_displacement_utilities(space, domain):
    alpha = th.tensor([0.2, 0.1, -0.4, 0.0, 1.0], dtype=th.float64)
    transformation = space.apply(alpha)

    displacement = compute_displacement(transformation, domain)

    assert displacement.shape == (domain.number_of_points, 1)
    assert th.allclose(displacement[:, 0], th.mv(space.derivative_wrt_parameters(domain.points), alpha))
    assert th.allclose(transform_points(transformation, [0.0, 1.0]),
                       transformation(th.tensor([[0.0], [1.0]], dtype=th.float64)).detach())


def test_sample_transformation(space):
    first = sample_transformation(space, seed=3)
    second = sample_transformation(space, seed=3)

    assert isinstance(first, KernelTransformation)
    assert th.equal(first.trans_parameters, second.trans_parameters)
    assert th.equal(first.trans_parameters,
                    sample_transformation(space, generator=th.Generator().manual_seed(3)).trans_parameters)


def test_space_state_dict(space):
    state = space.state_dict()

    assert state["nystrom._eigenvectors"].shape == (100, NUM_PARAMETERS)
    assert "gp.kernel._sigma" in state


def test_module_apply(space):
    """Functions are applied to the modules as by torch, the shared space is not a submodule."""
    transformation = space.apply(space.identity_parameters())
    visited = []

    assert transformation.apply(visited.append) is transformation
    assert visited == [transformation]
    assert transformation.space is space
    assert list(transformation.state_dict().keys()) == ["trans_parameters"]

    visited = []
    assert space.apply(visited.append) is space
    assert space in visited and space.nystrom in visited
