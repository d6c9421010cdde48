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

import numpy as np
import torch as th

from ..utils.errors import DimensionMismatchError, PreconditionError
from ..utils.generator import make_generator
from ..utils.kernelFunction import Kernel
from ..utils.matrix import compute_kernel_matrix, compute_cross_kernel_matrix, inverse, cholesky
from ..utils.points import as_points, as_point_set, Points

DEFAULT_JITTER = 1e-6


"""
    Base class for mean functions
"""
class MeanFunction(th.nn.Module):
    def __init__(self, dtype=th.float64, device='cpu'):
        super(MeanFunction, self).__init__()

        self._dtype = dtype
        self._device = device

    @property
    def dtype(self):
        return self._dtype

    @property
    def device(self):
        return self._device

    def evaluate(self, x):
        """
        Evaluates the mean function for a single point and returns a float
        """
        return self(as_points(x, dtype=self._dtype, device=self._device)).item()

    def forward(self, points):
        raise NotImplementedError


class ZeroMean(MeanFunction):
    def forward(self, points):
        return th.zeros(points.size(0), dtype=self._dtype, device=self._device)


class ConstantMean(MeanFunction):
    def __init__(self, value, dtype=th.float64, device='cpu'):
        super(ConstantMean, self).__init__(dtype, device)

        self.register_buffer("_value", th.tensor(float(value), dtype=dtype, device=device))

    def forward(self, points):
        return self._value.expand(points.size(0)).clone()


class FunctionMean(MeanFunction):
    r"""
    Mean function given by a Python callable

    Args:
        function (callable): maps a point (tensor of shape (dim,)) to a number. If vectorized is True, the
                             function maps a point set (n, dim) to a tensor (n,)
        vectorized (bool): the function accepts whole point sets
    """
    def __init__(self, function, vectorized=False, dtype=th.float64, device='cpu'):
        super(FunctionMean, self).__init__(dtype, device)

        self._function = function
        self._vectorized = vectorized

    def forward(self, points):
        if self._vectorized:
            return th.as_tensor(self._function(points), dtype=self._dtype, device=self._device).reshape(-1)

        values = [float(self._function(point)) for point in points]
        return th.tensor(values, dtype=self._dtype, device=self._device)


class PosteriorMean(MeanFunction):
    r"""
    Mean of a Gaussian process conditioned on training data

        m'(x) = k(x, X) w,    w = (K + sigma2 I)^-1 y

    Args:
        kernel (Kernel): kernel of the prior process
        points (th.Tensor): training points X
        weights (th.Tensor): precomputed weight vector w
    """
    def __init__(self, kernel, points, weights):
        super(PosteriorMean, self).__init__(kernel.dtype, kernel.device)

        self.kernel = kernel

        self.register_buffer("_points", points)
        self.register_buffer("_weights", weights)

    def forward(self, points):
        kernel_matrix = compute_cross_kernel_matrix(points, self._points, self.kernel)
        return th.mv(kernel_matrix, self._weights)


class PosteriorKernel(Kernel):
    r"""
    Kernel of a Gaussian process conditioned on training data

        k'(x, y) = k(x, y) - k(x, X) (K + sigma2 I)^-1 k(X, y)

    Args:
        kernel (Kernel): kernel of the prior process
        points (th.Tensor): training points X
        kernel_inverse (th.Tensor): precomputed inverse of K + sigma2 I
    """
    def __init__(self, kernel, points, kernel_inverse):
        super(PosteriorKernel, self).__init__(kernel.dtype, kernel.device)

        self.kernel = kernel

        self.register_buffer("_points", points)
        self.register_buffer("_kernel_inverse", kernel_inverse)

    def forward(self, x, y):
        self._check_pair(x, y)

        k_x = compute_cross_kernel_matrix(x, self._points, self.kernel)
        k_y = compute_cross_kernel_matrix(y, self._points, self.kernel)

        return self.kernel(x, y) - (th.mm(k_x, self._kernel_inverse)*k_y).sum(dim=1)

    def kernel_matrix(self, points):
        k_p = compute_cross_kernel_matrix(points, self._points, self.kernel)
        matrix = self.kernel.kernel_matrix(points) - th.mm(th.mm(k_p, self._kernel_inverse), k_p.t())

        # the product is symmetric only up to rounding
        return 0.5*(matrix + matrix.t())

    def cross_kernel_matrix(self, xs, points):
        k_x = compute_cross_kernel_matrix(xs, self._points, self.kernel)
        k_y = compute_cross_kernel_matrix(points, self._points, self.kernel)

        return self.kernel.cross_kernel_matrix(xs, points) - th.mm(th.mm(k_x, self._kernel_inverse), k_y.t())


def _training_data_as_tensors(training_data, dtype, device):
    """
    Accepts either a sequence of (point, value) pairs or a tuple (points, values) of arrays
    """
    if isinstance(training_data, tuple) and len(training_data) == 2 and \
            isinstance(training_data[1], (th.Tensor, np.ndarray)):
        points, values = training_data
        values = th.as_tensor(values, dtype=dtype, device=device).reshape(-1)

        points = as_point_set(points, dtype=dtype, device=device)
    else:
        training_data = list(training_data)
        if len(training_data) == 0:
            raise PreconditionError("The training data is empty")

        points = th.cat([as_points(point, dtype=dtype, device=device) for point, _ in training_data], dim=0)
        values = th.tensor([float(value) for _, value in training_data], dtype=dtype, device=device)

    if points.size(0) == 0:
        raise PreconditionError("The training data is empty")
    if points.size(0) != values.size(0):
        raise DimensionMismatchError("Got " + str(points.size(0)) + " training points but " +
                                     str(values.size(0)) + " values")

    return points, values


class GaussianProcess(th.nn.Module):
    r"""
    Gaussian process defined by a mean function and a kernel.

    A Gaussian process is never changed after its construction, posterior() returns a new process.

    Args:
        mean (MeanFunction): mean function, a plain callable mapping a point to a number is wrapped
                             in a FunctionMean
        kernel (Kernel): covariance function
        jitter (float): value added to the diagonal of the covariance matrix before the Cholesky
                        factorization when drawing samples
    """
    def __init__(self, mean, kernel, jitter=DEFAULT_JITTER):
        super(GaussianProcess, self).__init__()

        if jitter < 0:
            raise PreconditionError("The jitter has to be non-negative. Got " + str(jitter))
        if not isinstance(kernel, Kernel):
            raise PreconditionError("The kernel of a Gaussian process has to be a Kernel. Got " + str(type(kernel)))

        if not isinstance(mean, MeanFunction):
            if not callable(mean):
                raise PreconditionError("The mean of a Gaussian process has to be a MeanFunction or a callable. Got " +
                                        str(type(mean)))
            mean = FunctionMean(mean, dtype=kernel.dtype, device=kernel.device)

        self.mean = mean
        self.kernel = kernel
        self._jitter = jitter

    @property
    def jitter(self):
        return self._jitter

    @property
    def dtype(self):
        return self.kernel.dtype

    @property
    def device(self):
        return self.kernel.device

    def _as_points(self, points):
        return as_point_set(points, dtype=self.kernel.dtype, device=self.kernel.device)

    def posterior(self, training_data, sigma2, verbose=False):
        """
        Conditions the process on noisy observations

        The posterior mean is k(x, X) (K + sigma2 I)^-1 y, the mean of this process does not enter it.

        training_data (sequence | tuple): (point, value) pairs or a tuple (points, values)
        sigma2 (float): variance of the observation noise
        verbose (bool): print the number of observations
        return (GaussianProcess): posterior process
        """
        if sigma2 < 0:
            raise PreconditionError("The noise variance has to be non-negative. Got " + str(sigma2))

        points, values = _training_data_as_tensors(training_data, self.kernel.dtype, self.kernel.device)

        if sigma2 == 0 and Points.has_duplicates(points):
            raise PreconditionError("The training data contains duplicate points, the kernel matrix is singular "
                                    "without observation noise")

        kernel_matrix = compute_kernel_matrix(points, self.kernel)
        identity = th.eye(points.size(0), dtype=kernel_matrix.dtype, device=kernel_matrix.device)

        kernel_inverse = inverse(kernel_matrix + identity*sigma2)
        weights = th.mv(kernel_inverse, values)

        if verbose:
            print("Posterior: conditioned on " + str(points.size(0)) + " observations with noise variance " +
                  str(sigma2), flush=True)

        return GaussianProcess(PosteriorMean(self.kernel, points, weights),
                               PosteriorKernel(self.kernel, points, kernel_inverse),
                               jitter=self._jitter)

    def mean_vector(self, points):
        return self.mean(self._as_points(points))

    def covariance_matrix(self, points):
        return compute_kernel_matrix(self._as_points(points), self.kernel)

    def marginal_variance(self, points):
        """
        Variance k(x, x) of the process at each of the points
        """
        points = self._as_points(points)
        return self.kernel(points, points)

    def sample(self, points, num_samples=None, generator=None, seed=None):
        """
        Draws samples of the process at a finite set of points

        points (th.Tensor): point set (n, dim)
        num_samples (int): number of samples, a single sample is returned if None
        generator (th.Generator): random number generator
        seed (int): seed for a new generator, only used if no generator is given
        return (th.Tensor): sample (n,) or samples (num_samples, n)
        """
        points = self._as_points(points)
        n = points.size(0)

        mean_vector = self.mean(points)
        covariance = compute_kernel_matrix(points, self.kernel)
        covariance = covariance + th.eye(n, dtype=covariance.dtype, device=covariance.device)*self._jitter

        lower = cholesky(covariance)

        generator = make_generator(generator, seed, device=covariance.device)

        number = 1 if num_samples is None else int(num_samples)
        z = th.randn(number, n, generator=generator, dtype=covariance.dtype, device=covariance.device).t()

        samples = mean_vector.unsqueeze(1) + th.mm(lower, z)

        if num_samples is None:
            return samples[:, 0]
        return samples.t()
