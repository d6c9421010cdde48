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

from ..utils.generator import make_generator
from ..utils.points import as_points


def transform_points(transformation, points):
    """
    Transforms a point set with a transformation

    points (th.Tensor | array): point set (n, 1)
    return (th.Tensor): transformed points (n, 1)
    """
    points = as_points(points, dim=1, dtype=transformation.space.gp.dtype, device=transformation.space.gp.device)

    with th.no_grad():
        return transformation(points)


def compute_displacement(transformation, domain):
    """
    Displacement T(x) - x at every point of the domain

    return (th.Tensor): displacement field (N, 1)
    """
    points = domain.points if hasattr(domain, "points") else domain
    points = as_points(points, dim=1, dtype=transformation.space.gp.dtype, device=transformation.space.gp.device)

    return transform_points(transformation, points) - points


"""
    Draw a transformation from the prior of a kernel transformation space
"""
def sample_transformation(space, generator=None, seed=None):
    generator = make_generator(generator, seed, device=space.gp.device)

    parameters = th.randn(space.parameters_dimensionality, generator=generator,
                          dtype=space.gp.dtype, device=space.gp.device)

    return space.apply(parameters)
