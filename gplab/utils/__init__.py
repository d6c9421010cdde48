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

from .errors import DimensionMismatchError, PreconditionError, NumericalError, Unsupported, is_supported

from .points import Points, as_points, as_point_set

from .domain import DiscreteDomain, compute_coordinate_grid

from .kernelFunction import Kernel, ConstantKernel, GaussianKernel, PolynomialKernel, SumKernel, ProductKernel,\
                            ScaledKernel

from .matrix import compute_kernel_matrix, compute_kernel_vector, compute_cross_kernel_matrix, inverse, cholesky,\
                    symmetric_eig, assemble_kernel_matrix, assemble_cross_kernel_matrix

from .generator import make_generator


__all__ = ['DimensionMismatchError', 'PreconditionError', 'NumericalError', 'Unsupported', 'is_supported',\
           'Points', 'as_points', 'as_point_set', 'DiscreteDomain', 'compute_coordinate_grid',\
           'Kernel', 'ConstantKernel', 'GaussianKernel', 'PolynomialKernel', 'SumKernel', 'ProductKernel',\
           'ScaledKernel', 'compute_kernel_matrix', 'compute_kernel_vector', 'compute_cross_kernel_matrix',\
           'inverse', 'cholesky', 'symmetric_eig', 'assemble_kernel_matrix', 'assemble_cross_kernel_matrix',\
           'make_generator']
