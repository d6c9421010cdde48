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
from torch.nn.parameter import Parameter

from ..gp.nystrom import NystromApproximation, DEFAULT_EIGENVALUE_TOLERANCE
from ..utils.errors import DimensionMismatchError, PreconditionError, Unsupported
from ..utils.points import as_points, as_point_set


class KernelTransformationSpace(th.nn.Module):
    r"""
    Parametric space of transformations spanned by the leading eigenfunctions of a Gaussian process.

    A parameter vector alpha defines the transformation

        T(x) = x + sum_i alpha_i sqrt(lambda_i) phi_i(x) + m(x)

    where (lambda_i, phi_i) are the eigenpairs of the process kernel approximated with the Nystrom method
    over the points of the domain, and m is the process mean. The eigenpairs are computed once when the
    space is created.

    Args:
        domain (DiscreteDomain | th.Tensor): 1-D domain or point set used as landmarks
        num_parameters (int): number of eigenpairs (parameters) of the space
        gp (GaussianProcess): Gaussian process defining the deformation prior
        tolerance (float): relative tolerance for dropping small eigenvalues
        verbose (bool): print information about the eigendecomposition
    """
    def __init__(self, domain, num_parameters, gp, tolerance=DEFAULT_EIGENVALUE_TOLERANCE, verbose=False):
        super(KernelTransformationSpace, self).__init__()

        if hasattr(domain, "points"):
            points = domain.points
        else:
            points = domain

        points = as_point_set(points, dtype=gp.dtype, device=gp.device)

        if points.size(1) != 1:
            raise PreconditionError("Kernel transformation spaces are defined for 1-D domains. Got dimension " +
                                    str(points.size(1)))

        self.domain = domain
        self.gp = gp
        self.nystrom = NystromApproximation(gp.kernel, points, num_parameters, tolerance=tolerance,
                                            verbose=verbose)

    @property
    def dim(self):
        return 1

    @property
    def parameters_dimensionality(self):
        return self.nystrom.rank

    @property
    def eigen_pairs(self):
        return self.nystrom.eigen_pairs

    def identity_parameters(self):
        """
        Parameter vector of the transformation which only applies the process mean
        """
        return th.zeros(self.parameters_dimensionality, dtype=self.gp.dtype, device=self.gp.device)

    def derivative_wrt_parameters(self, points):
        """
        Jacobian of the transformation with respect to its parameters. The transformation is linear in the
        parameters, hence the Jacobian does not depend on them.

        points (th.Tensor): point set (n, 1)
        return (th.Tensor): matrix (n, parameters_dimensionality) with entry [k, i] = sqrt(lambda_i) phi_i(x_k)
        """
        points = as_points(points, dim=1, dtype=self.gp.dtype, device=self.gp.device)

        return self.nystrom.eigenfunctions(points)*th.sqrt(self.nystrom.eigenvalues).unsqueeze(0)

    def apply(self, parameters):
        """
        Creates the transformation for a parameter vector

        parameters (th.Tensor | array): parameter vector of length parameters_dimensionality
        return (KernelTransformation): transformation
        """
        # a function is applied to the submodules as by th.nn.Module.apply
        if callable(parameters):
            return super(KernelTransformationSpace, self).apply(parameters)

        return KernelTransformation(self, parameters)

    def inverse_transform(self, parameters):
        return Unsupported("inverse_transform", "kernel transformations are not invertible in general")

    def forward(self, parameters):
        return self.apply(parameters)


class KernelTransformation(th.nn.Module):
    r"""
    Transformation of a kernel transformation space for one parameter vector.

    The parameters are stored in trans_parameters as torch Parameter, such that the transformation can be
    optimised with a torch optimiser.

    Args:
        space (KernelTransformationSpace): space the transformation belongs to
        parameters (th.Tensor | array): parameter vector of length space.parameters_dimensionality
    """
    def __init__(self, space, parameters):
        super(KernelTransformation, self).__init__()

        parameters = th.as_tensor(parameters, dtype=space.gp.dtype, device=space.gp.device)

        if parameters.ndim != 1 or parameters.size(0) != space.parameters_dimensionality:
            raise DimensionMismatchError("Expected a parameter vector of length " +
                                         str(space.parameters_dimensionality) + ". Got shape " +
                                         str(tuple(parameters.shape)))

        # the space is shared by all its transformations and is not a submodule
        object.__setattr__(self, "_space", space)
        self.trans_parameters = Parameter(parameters.detach().clone())

    @property
    def space(self):
        return self._space

    def forward(self, points):
        """
        Transforms a point set (n, 1)
        """
        points = as_points(points, dim=1, dtype=self.space.gp.dtype, device=self.space.gp.device)

        displacement = th.mv(self.space.derivative_wrt_parameters(points), self.trans_parameters) + \
                       self.space.gp.mean(points)

        return points + displacement.unsqueeze(1)

    def evaluate(self, x):
        """
        Transforms a single point

        return (th.Tensor): transformed point of shape (1,)
        """
        return self(as_points(x, dim=1, dtype=self.space.gp.dtype, device=self.space.gp.device)).detach()[0]

    def derivative_wrt_parameters(self, x):
        """
        Derivative with respect to the parameters, one row (1, parameters_dimensionality) per point
        """
        return self.space.derivative_wrt_parameters(x).detach()

    def inverse_transform(self):
        return self.space.inverse_transform(self.trans_parameters)

    def spatial_derivative(self, x):
        # TODO: differentiate the eigenfunctions through the kernel to provide the spatial Jacobian
        return Unsupported("spatial_derivative", "the spatial derivative of kernel transformations is not "
                                                 "implemented")
