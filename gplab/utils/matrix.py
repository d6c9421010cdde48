# Copyright 2018 University of Basel, Center for medical Image Analysis and Navigation
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import torch as th

from .errors import NumericalError
from .points import as_points, as_point_set


def compute_kernel_matrix(points, kernel):
    """
    Assembles the symmetric kernel (Gram) matrix K[i, j] = k(points[i], points[j])

    The assembly is delegated to kernel.kernel_matrix, such that kernels with a factored form (e.g. posterior
    or low-rank kernels) can avoid the pairwise evaluation.

    points (th.Tensor): point set (n, dim)
    kernel (Kernel): positive definite kernel
    return (th.Tensor): kernel matrix (n, n)
    """
    points = as_point_set(points, dtype=kernel.dtype, device=kernel.device)

    return kernel.kernel_matrix(points)


def assemble_kernel_matrix(points, kernel):
    """
    Pairwise assembly of the kernel matrix of a point set (n, dim)

    The kernel is evaluated only for the pairs i <= j, the lower triangle is mirrored.
    """
    n = points.size(0)

    index_i, index_j = th.triu_indices(n, n, device=points.device)
    values = kernel(points[index_i], points[index_j])

    matrix = th.zeros(n, n, dtype=points.dtype, device=points.device)
    matrix[index_i, index_j] = values
    matrix[index_j, index_i] = values

    return matrix


def compute_kernel_vector(x, points, kernel):
    """
    Evaluates k(x, points[i]) for a single point x

    return (th.Tensor): kernel vector (n,)
    """
    x = as_points(x, dtype=kernel.dtype, device=kernel.device)
    points = as_point_set(points, dtype=kernel.dtype, device=kernel.device)

    return kernel(x, points)


def compute_cross_kernel_matrix(xs, points, kernel):
    """
    Evaluates k(xs[i], points[j]) for every pair of the two point sets

    return (th.Tensor): kernel matrix (m, n)
    """
    xs = as_point_set(xs, dtype=kernel.dtype, device=kernel.device)
    points = as_point_set(points, dtype=kernel.dtype, device=kernel.device)

    return kernel.cross_kernel_matrix(xs, points)


def assemble_cross_kernel_matrix(xs, points, kernel):
    """
    Pairwise assembly of the kernel matrix (m, n) between two point sets
    """
    m, dim = xs.size()
    n = points.size(0)

    x_pairs = xs.unsqueeze(1).expand(m, n, dim).reshape(m*n, dim)
    y_pairs = points.unsqueeze(0).expand(m, n, dim).reshape(m*n, dim)

    return kernel(x_pairs, y_pairs).view(m, n)


def inverse(matrix):
    """
    Inverts a square matrix. Raises a NumericalError if the matrix is singular or too badly conditioned
    to be inverted in the working precision.
    """
    max_condition = 1.0/(max(matrix.size(0), 1)*th.finfo(matrix.dtype).eps)

    condition = th.linalg.cond(matrix).item()
    if not condition < max_condition:
        raise NumericalError("Matrix is singular or ill-conditioned (condition number " + str(condition) + ")")

    try:
        return th.linalg.inv(matrix)
    except th.linalg.LinAlgError as error:
        raise NumericalError("Matrix inversion failed: " + str(error)) from error


def cholesky(matrix):
    """
    Returns the lower triangular Cholesky factor L with L L^T = matrix. Raises a NumericalError if the
    matrix is not positive definite.
    """
    lower, info = th.linalg.cholesky_ex(matrix)

    if info.item() > 0:
        raise NumericalError("Cholesky factorization failed, the matrix is not positive definite "
                             "(leading minor of order " + str(info.item()) + ")")

    return lower


def symmetric_eig(matrix):
    """
    Eigendecomposition of a symmetric matrix

    The eigenvalues are sorted in descending order, equal eigenvalues keep the order of the decomposition.

    return (tuple): eigenvalues (n,), eigenvectors (n, n) where column i belongs to eigenvalue i
    """
    try:
        eigen_values, eigen_vectors = th.linalg.eigh(matrix)
    except th.linalg.LinAlgError as error:
        raise NumericalError("Eigendecomposition failed: " + str(error)) from error

    eigen_values, order = th.sort(eigen_values, descending=True, stable=True)

    return eigen_values, eigen_vectors[:, order]
