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

from .gaussianProcess import GaussianProcess, MeanFunction, ZeroMean, ConstantMean, FunctionMean, PosteriorMean,\
                             PosteriorKernel, DEFAULT_JITTER

from .nystrom import NystromApproximation, EigenPair, EigenFunction, LowRankKernel, DEFAULT_EIGENVALUE_TOLERANCE
