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


def make_generator(generator=None, seed=None, device='cpu'):
    """
    Returns the given random number generator, or a new generator seeded with seed. Without generator and
    seed None is returned and torch uses its default generator.
    """
    if generator is None and seed is not None:
        generator = th.Generator(device=device)
        generator.manual_seed(seed)

    return generator
