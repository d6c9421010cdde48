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


# Regulariser base class (standard from PyTorch)
class _ParameterRegulariser(th.nn.modules.Module):
    def __init__(self, parameter_name, size_average=True, reduce=True):
        super(_ParameterRegulariser, self).__init__()
        self._size_average = size_average
        self._reduce = reduce
        self._weight = 1
        self.name = "parent"
        self._parameter_name = parameter_name

    def set_weight(self, weight):
        self._weight = weight

    # conditional return
    def return_loss(self, tensor):
        if self._size_average and self._reduce:
            return self._weight*tensor.mean()
        if not self._size_average and self._reduce:
            return self._weight*tensor.sum()
        if not self._reduce:
            return self._weight*tensor


"""
    L2 regularisation of the parameters of a kernel transformation

    The parameters of a kernel transformation are standard normal distributed under the Gaussian process
    prior, the squared norm is the negative log prior up to a constant factor.
"""
class L2Regulariser(_ParameterRegulariser):
    def __init__(self, parameter_name="trans_parameters", size_average=False, reduce=True):
        super(L2Regulariser, self).__init__(parameter_name, size_average, reduce)

        self.name = "param_L2"

    def forward(self, parameters):
        for name, parameter in parameters:
            if self._parameter_name in name:
                return self.return_loss(parameter.pow(2))
