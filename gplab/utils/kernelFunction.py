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

import numbers

import torch as th

from .errors import DimensionMismatchError, PreconditionError
from .matrix import assemble_kernel_matrix, assemble_cross_kernel_matrix
from .points import as_points


"""
    Base class for a positive definite kernel
"""
class Kernel(th.nn.Module):
    r"""
    A kernel is evaluated on pairs of points: forward(x, y) takes two point sets of shape (n, dim) and returns
    the n kernel values k(x[i], y[i]). A point set with a single point is broadcast against the other one.

    Kernels can be combined with + and *, a kernel multiplied with a non-negative number is a scaled kernel.
    """
    def __init__(self, dtype=th.float64, device='cpu'):
        super(Kernel, self).__init__()

        self._dtype = dtype
        self._device = device

    @property
    def dtype(self):
        return self._dtype

    @property
    def device(self):
        return self._device

    def _check_pair(self, x, y):
        if x.size(-1) != y.size(-1):
            raise DimensionMismatchError("Kernel arguments differ in dimension: " + str(x.size(-1)) +
                                         " and " + str(y.size(-1)))

    def evaluate(self, x, y):
        """
        Evaluates the kernel for a single pair of points and returns a float
        """
        x = as_points(x, dtype=self._dtype, device=self._device)
        y = as_points(y, dtype=self._dtype, device=self._device)
        self._check_pair(x, y)

        return self(x, y).item()

    def __add__(self, other):
        if isinstance(other, Kernel):
            return SumKernel(self, other)
        return NotImplemented

    def __mul__(self, other):
        if isinstance(other, Kernel):
            return ProductKernel(self, other)
        elif isinstance(other, numbers.Number):
            return ScaledKernel(self, other)
        return NotImplemented

    def __rmul__(self, other):
        return self.__mul__(other)

    def kernel_matrix(self, points):
        """
        Kernel matrix (n, n) of a point set (n, dim). Kernels with a factored form override this method.
        """
        return assemble_kernel_matrix(points, self)

    def cross_kernel_matrix(self, xs, points):
        """
        Kernel matrix (m, n) between the point sets xs (m, dim) and points (n, dim)
        """
        return assemble_cross_kernel_matrix(xs, points, self)

    def forward(self, x, y):
        raise NotImplementedError


class ConstantKernel(Kernel):
    r"""
    Constant kernel k(x, y) = value

    Args:
        value (float): non-negative constant
    """
    def __init__(self, value=1.0, dtype=th.float64, device='cpu'):
        super(ConstantKernel, self).__init__(dtype, device)

        if value < 0:
            raise PreconditionError("The value of a constant kernel has to be non-negative. Got " + str(value))

        self.register_buffer("_value", th.tensor(float(value), dtype=dtype, device=device))

    def forward(self, x, y):
        self._check_pair(x, y)
        shape = th.broadcast_shapes(x.shape[:-1], y.shape[:-1])
        return self._value.expand(shape).clone()


class GaussianKernel(Kernel):
    r"""
    Gaussian kernel k(x, y) = exp(-|x - y|^2 / sigma^2)

    Args:
        sigma (float): width of the kernel
    """
    def __init__(self, sigma, dtype=th.float64, device='cpu'):
        super(GaussianKernel, self).__init__(dtype, device)

        if sigma <= 0:
            raise PreconditionError("sigma has to be positive. Got " + str(sigma))

        self.register_buffer("_sigma", th.tensor(float(sigma), dtype=dtype, device=device))

    @property
    def sigma(self):
        return self._sigma.item()

    def forward(self, x, y):
        self._check_pair(x, y)
        r2 = (x - y).pow(2).sum(dim=-1)
        return th.exp(-r2/self._sigma.pow(2))


class PolynomialKernel(Kernel):
    r"""
    Polynomial kernel k(x, y) = (<x, y> + 1)^degree

    Args:
        degree (int): degree of the polynomial
    """
    def __init__(self, degree, dtype=th.float64, device='cpu'):
        super(PolynomialKernel, self).__init__(dtype, device)

        if int(degree) != degree or degree < 0:
            raise PreconditionError("The degree has to be a non-negative integer. Got " + str(degree))

        self.register_buffer("_degree", th.tensor(int(degree), device=device))

    @property
    def degree(self):
        return int(self._degree.item())

    def forward(self, x, y):
        self._check_pair(x, y)
        return ((x*y).sum(dim=-1) + 1).pow(self.degree)


"""
    Composed kernels
"""
class SumKernel(Kernel):
    def __init__(self, kernel_1, kernel_2):
        super(SumKernel, self).__init__(kernel_1.dtype, kernel_1.device)

        self.kernel_1 = kernel_1
        self.kernel_2 = kernel_2

    def forward(self, x, y):
        return self.kernel_1(x, y) + self.kernel_2(x, y)

    def kernel_matrix(self, points):
        return self.kernel_1.kernel_matrix(points) + self.kernel_2.kernel_matrix(points)

    def cross_kernel_matrix(self, xs, points):
        return self.kernel_1.cross_kernel_matrix(xs, points) + self.kernel_2.cross_kernel_matrix(xs, points)


class ProductKernel(Kernel):
    def __init__(self, kernel_1, kernel_2):
        super(ProductKernel, self).__init__(kernel_1.dtype, kernel_1.device)

        self.kernel_1 = kernel_1
        self.kernel_2 = kernel_2

    def forward(self, x, y):
        return self.kernel_1(x, y)*self.kernel_2(x, y)

    def kernel_matrix(self, points):
        return self.kernel_1.kernel_matrix(points)*self.kernel_2.kernel_matrix(points)

    def cross_kernel_matrix(self, xs, points):
        return self.kernel_1.cross_kernel_matrix(xs, points)*self.kernel_2.cross_kernel_matrix(xs, points)


class ScaledKernel(Kernel):
    def __init__(self, kernel, scale):
        super(ScaledKernel, self).__init__(kernel.dtype, kernel.device)

        # a negative factor destroys the positive definiteness
        if scale < 0:
            raise PreconditionError("A kernel can only be scaled by a non-negative factor. Got " + str(scale))

        self.kernel = kernel
        self.register_buffer("_scale", th.tensor(float(scale), dtype=kernel.dtype, device=kernel.device))

    def forward(self, x, y):
        return self._scale*self.kernel(x, y)

    def kernel_matrix(self, points):
        return self._scale*self.kernel.kernel_matrix(points)

    def cross_kernel_matrix(self, xs, points):
        return self._scale*self.kernel.cross_kernel_matrix(xs, points)
