"""
Unit tests for the kernel matrix assembly and the linear algebra helpers.
"""

import numpy as np
import pytest
import torch as th

from gplab.utils import GaussianKernel, PolynomialKernel, ConstantKernel, NumericalError
from gplab.utils import compute_kernel_matrix, compute_kernel_vector, compute_cross_kernel_matrix, inverse, \
    cholesky, symmetric_eig, make_generator


class CountingKernel(ConstantKernel):
    """Constant kernel which counts the number of evaluated pairs."""
    def __init__(self):
        super(CountingKernel, self).__init__(1.0)
        self.evaluations = 0

    def forward(self, x, y):
        self.evaluations += max(x.size(0), y.size(0))
        return super(CountingKernel, self).forward(x, y)


@pytest.mark.parametrize("kernel", [GaussianKernel(0.5), PolynomialKernel(3), GaussianKernel(2.0)*3.0])
def test_kernel_matrix_symmetry(kernel):
    """Test M[i][j] == M[j][i]."""
    points = th.randn(30, 2, generator=th.Generator().manual_seed(1), dtype=th.float64)

    matrix = compute_kernel_matrix(points, kernel)

    assert matrix.shape == (30, 30)
    assert th.equal(matrix, matrix.t())


def test_kernel_matrix_values():
    kernel = GaussianKernel(1.0)
    points = [0.0, 1.0, 3.0]

    matrix = compute_kernel_matrix(points, kernel)

    for i, x in enumerate(points):
        for j, y in enumerate(points):
            assert matrix[i, j].item() == pytest.approx(kernel.evaluate(x, y))


def test_kernel_matrix_evaluates_upper_triangle_only():
    kernel = CountingKernel()

    compute_kernel_matrix(th.arange(10, dtype=th.float64).unsqueeze(1), kernel)

    assert kernel.evaluations == 10*11//2


def test_kernel_vector():
    kernel = PolynomialKernel(2)
    points = th.tensor([[0.0], [1.0], [2.0], [5.0]], dtype=th.float64)

    vector = compute_kernel_vector(1.5, points, kernel)
    matrix = compute_cross_kernel_matrix([1.5, -1.0], points, kernel)

    assert vector.shape == (4,)
    assert th.allclose(vector, th.tensor([1.0, 2.5, 4.0, 8.5], dtype=th.float64).pow(2))
    assert matrix.shape == (2, 4)
    assert th.allclose(matrix[0], vector)


def test_all_ones_kernel_matrix():
    """Constant kernel over three points: one eigenvalue 3 with eigenvector (1, 1, 1)/sqrt(3)."""
    matrix = compute_kernel_matrix([0.0, 1.0, 2.0], ConstantKernel(1.0))

    assert th.equal(matrix, th.ones(3, 3, dtype=th.float64))

    eigen_values, eigen_vectors = symmetric_eig(matrix)

    assert eigen_values[0].item() == pytest.approx(3.0)
    assert th.all(th.abs(eigen_values[1:]) < 1e-12)
    assert th.allclose(th.abs(eigen_vectors[:, 0]), th.ones(3, dtype=th.float64)/np.sqrt(3))


def test_symmetric_eig_descending():
    points = th.linspace(-2, 2, 25, dtype=th.float64).unsqueeze(1)
    matrix = compute_kernel_matrix(points, GaussianKernel(0.5))

    eigen_values, eigen_vectors = symmetric_eig(matrix)

    assert th.all(eigen_values[:-1] >= eigen_values[1:])
    assert th.allclose(th.mm(matrix, eigen_vectors[:, :3]), eigen_vectors[:, :3]*eigen_values[:3], atol=1e-10)


def test_symmetric_eig_repeated_eigenvalues():
    """Equal eigenvalues keep the order in which the decomposition returns their eigenvectors."""
    matrix = th.diag(th.tensor([2.0, 1.0, 2.0, 1.0, 2.0], dtype=th.float64))

    eigen_values, eigen_vectors = symmetric_eig(matrix)
    ascending_values, ascending_vectors = th.linalg.eigh(matrix)

    assert th.equal(eigen_values, th.tensor([2.0, 2.0, 2.0, 1.0, 1.0], dtype=th.float64))
    assert th.equal(ascending_values, th.tensor([1.0, 1.0, 2.0, 2.0, 2.0], dtype=th.float64))
    assert th.equal(eigen_vectors, ascending_vectors[:, [2, 3, 4, 0, 1]])

    # deterministic for repeated calls
    again_values, again_vectors = symmetric_eig(matrix)
    assert th.equal(again_values, eigen_values)
    assert th.equal(again_vectors, eigen_vectors)


def test_inverse():
    matrix = th.tensor([[2.0, 1.0], [1.0, 3.0]], dtype=th.float64)

    assert th.allclose(th.mm(inverse(matrix), matrix), th.eye(2, dtype=th.float64))


def test_inverse_of_singular_matrix():
    with pytest.raises(NumericalError):
        inverse(th.ones(2, 2, dtype=th.float64))


def test_cholesky():
    matrix = th.tensor([[4.0, 2.0], [2.0, 3.0]], dtype=th.float64)

    lower = cholesky(matrix)

    assert th.allclose(th.mm(lower, lower.t()), matrix)
    assert lower[0, 1].item() == 0.0


def test_cholesky_of_indefinite_matrix():
    with pytest.raises(NumericalError):
        cholesky(th.tensor([[1.0, 2.0], [2.0, 1.0]], dtype=th.float64))


def test_make_generator():
    assert make_generator() is None

    generator = th.Generator()
    assert make_generator(generator, seed=5) is generator

    first = th.randn(3, generator=make_generator(seed=5))
    assert th.equal(first, th.randn(3, generator=th.Generator().manual_seed(5)))
