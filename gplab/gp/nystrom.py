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

import math
from collections import namedtuple

import torch as th

from ..utils.errors import NumericalError, PreconditionError
from ..utils.kernelFunction import Kernel
from ..utils.matrix import compute_kernel_matrix, compute_cross_kernel_matrix, symmetric_eig
from ..utils.points import as_points, as_point_set

DEFAULT_EIGENVALUE_TOLERANCE = 1e-10

EigenPair = namedtuple("EigenPair", ["eigenvalue", "eigenfunction"])


class NystromApproximation(th.nn.Module):
    r"""
    Low-rank approximation of a kernel by its leading eigenfunctions.

    The kernel matrix K over the N landmark points is decomposed into eigenvalues l_i and unit eigenvectors
    u_i. The discrete eigenvectors are extended to eigenfunctions of the kernel with the Nystrom formula

        phi_i(x) = sqrt(N) / l_i * sum_j u_i[j] k(x, p_j)

    and the eigenvalues of the kernel are approximated by l_i / N, such that

        k(x, y) ~ sum_i (l_i / N) phi_i(x) phi_i(y).

    Negative eigenvalues caused by rounding errors are clamped to zero. Eigenvalues at or below
    tolerance * l_1 are dropped, hence the approximation can contain fewer than num_parameters eigenpairs.

    Args:
        kernel (Kernel): positive definite kernel
        points (th.Tensor): landmark points (N, dim)
        num_parameters (int): number of leading eigenpairs to compute
        tolerance (float): relative tolerance for dropping small eigenvalues
        verbose (bool): print information about the decomposition
    """
    def __init__(self, kernel, points, num_parameters, tolerance=DEFAULT_EIGENVALUE_TOLERANCE, verbose=False):
        super(NystromApproximation, self).__init__()

        points = as_point_set(points, dtype=kernel.dtype, device=kernel.device)
        number_of_points = points.size(0)

        if int(num_parameters) != num_parameters or num_parameters < 1:
            raise PreconditionError("The number of parameters has to be a positive integer. Got " +
                                    str(num_parameters))
        if num_parameters > number_of_points:
            raise PreconditionError("Cannot compute " + str(num_parameters) + " eigenpairs from " +
                                    str(number_of_points) + " landmark points")

        self.kernel = kernel
        self._tolerance = tolerance

        if verbose:
            print("Nystrom approximation: decompose kernel matrix of size " + str(number_of_points) + "x" +
                  str(number_of_points), flush=True)

        kernel_matrix = compute_kernel_matrix(points, kernel)
        eigen_values, eigen_vectors = symmetric_eig(kernel_matrix)

        eigen_values = eigen_values.clamp(min=0)[:num_parameters]
        eigen_vectors = eigen_vectors[:, :num_parameters]

        threshold = tolerance*eigen_values[0].item()
        valid = eigen_values > threshold
        number_of_valid = int(valid.sum().item())

        if number_of_valid == 0:
            raise NumericalError("The kernel matrix has no eigenvalue above the tolerance " + str(tolerance))

        if number_of_valid < num_parameters:
            print("Warning: " + str(num_parameters - number_of_valid) + " of " + str(num_parameters) +
                  " eigenvalues are not above the tolerance and are dropped")

        self.register_buffer("_landmarks", points)
        self.register_buffer("_matrix_eigenvalues", eigen_values[valid].clone())
        self.register_buffer("_eigenvectors", eigen_vectors[:, valid].clone())

        if verbose:
            print("Nystrom approximation: " + str(number_of_valid) + " eigenpairs, largest eigenvalue " +
                  str(self.eigenvalues[0].item()), flush=True)

    @property
    def landmarks(self):
        return self._landmarks

    @property
    def number_of_landmarks(self):
        return self._landmarks.size(0)

    @property
    def matrix_eigenvalues(self):
        """
        Retained eigenvalues of the kernel matrix over the landmarks (descending)
        """
        return self._matrix_eigenvalues

    @property
    def eigenvalues(self):
        """
        Approximated eigenvalues of the kernel (descending)
        """
        return self._matrix_eigenvalues/self.number_of_landmarks

    @property
    def eigenvectors(self):
        return self._eigenvectors

    @property
    def rank(self):
        return self._matrix_eigenvalues.size(0)

    def __len__(self):
        return self.rank

    def eigenfunctions(self, points):
        """
        Evaluates all eigenfunctions at the given points

        points (th.Tensor): point set (n, dim)
        return (th.Tensor): matrix (n, rank) with entry [k, i] = phi_i(points[k])
        """
        kernel_matrix = compute_cross_kernel_matrix(points, self._landmarks, self.kernel)

        scale = math.sqrt(self.number_of_landmarks)/self._matrix_eigenvalues

        return th.mm(kernel_matrix, self._eigenvectors)*scale.unsqueeze(0)

    @property
    def eigen_pairs(self):
        """
        List of (eigenvalue, eigenfunction) pairs sorted by descending eigenvalue
        """
        return [EigenPair(self.eigenvalues[i].item(), EigenFunction(self, i)) for i in range(self.rank)]

    def forward(self, points):
        return self.eigenfunctions(points)


class EigenFunction:
    """
        Callable eigenfunction phi_i of a Nystrom approximation
    """
    def __init__(self, approximation, index):
        self._approximation = approximation
        self.index = index

    def __call__(self, points):
        approximation = self._approximation
        landmarks = approximation.landmarks

        points = as_points(points, dim=landmarks.size(1), dtype=landmarks.dtype, device=landmarks.device)

        kernel_matrix = compute_cross_kernel_matrix(points, landmarks, approximation.kernel)
        scale = math.sqrt(approximation.number_of_landmarks)/approximation.matrix_eigenvalues[self.index]

        return th.mv(kernel_matrix, approximation.eigenvectors[:, self.index])*scale


class LowRankKernel(Kernel):
    r"""
    Kernel which is reconstructed from the eigenpairs of a Nystrom approximation

        k(x, y) = sum_i lambda_i phi_i(x) phi_i(y)

    Args:
        approximation (NystromApproximation): approximation of the original kernel
    """
    def __init__(self, approximation):
        super(LowRankKernel, self).__init__(approximation.kernel.dtype, approximation.kernel.device)

        self.approximation = approximation

    def forward(self, x, y):
        self._check_pair(x, y)

        phi_x = self.approximation.eigenfunctions(x)
        phi_y = self.approximation.eigenfunctions(y)

        return (phi_x*phi_y*self.approximation.eigenvalues.unsqueeze(0)).sum(dim=1)

    def kernel_matrix(self, points):
        phi = self.approximation.eigenfunctions(points)
        matrix = th.mm(phi*self.approximation.eigenvalues.unsqueeze(0), phi.t())

        return 0.5*(matrix + matrix.t())

    def cross_kernel_matrix(self, xs, points):
        phi_x = self.approximation.eigenfunctions(xs)
        phi_y = self.approximation.eigenfunctions(points)

        return th.mm(phi_x*self.approximation.eigenvalues.unsqueeze(0), phi_y.t())
