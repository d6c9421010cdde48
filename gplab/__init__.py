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

from . import utils
from . import gp
from . import transformation
from . import regulariser

from .utils import *
from .gp import GaussianProcess, ZeroMean, ConstantMean, FunctionMean, NystromApproximation, LowRankKernel
from .transformation import KernelTransformationSpace, KernelTransformation

__version__ = '0.1.0'
