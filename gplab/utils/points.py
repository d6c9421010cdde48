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

import numpy as np
import torch as th

from .errors import DimensionMismatchError


def as_points(points, dim=None, dtype=th.float64, device='cpu'):
    """
    Converts the input into a point set tensor of shape (n, dim)

    - a number is a single 1-D point
    - a one dimensional array is a single point, except for dim=1 where every entry is a 1-D point
    - a two dimensional array is taken as it is

    points (number | list | tuple | np.ndarray | th.Tensor): input coordinates
    dim (int): expected space dimension, no check if None
    return (th.Tensor): point set of shape (n, dim)
    """
    if isinstance(points, numbers.Number):
        points = th.tensor([[float(points)]], dtype=dtype, device=device)
    elif isinstance(points, th.Tensor):
        points = points.to(dtype=dtype, device=device)
    else:
        points = th.as_tensor(np.asarray(points, dtype=np.float64), dtype=dtype, device=device)

    if points.dim() == 0:
        points = points.reshape(1, 1)
    elif points.dim() == 1:
        if dim == 1:
            points = points.unsqueeze(1)
        else:
            points = points.unsqueeze(0)
    elif points.dim() > 2:
        raise DimensionMismatchError("Point sets have to be two dimensional (n, dim). Got shape " +
                                     str(tuple(points.shape)))

    if dim is not None and points.size(1) != dim:
        raise DimensionMismatchError("Expected points of dimension " + str(dim) + ". Got " + str(points.size(1)))

    return points


class Points:
    """
        Class implementing functionality for dealing with point sets:

        - read/write: the pts format is supported
        - has_duplicates: check if a point occurs more than once
    """
    @staticmethod
    def read(filename, dtype=th.float64, device='cpu'):
        """
        Read points from file. Each point is represented in one line where the coordinates are
        separated with a tab

        filename (str): filename
        return (th.Tensor): two dimensional point set
        """
        if filename.endswith("pts"):
            points = []
            with open(filename) as f:
                for l in f.readlines():
                    if l.strip():
                        points.append([float(p) for p in l.split()])
            return th.tensor(points, dtype=dtype, device=device)

        else:
            raise Exception("Format not supported: "+str(filename))

    @staticmethod
    def write(filename, points):
        """
        Write point set to hard drive

        filename (str): destination filename
        points (array | th.Tensor): two dimensional point set
        """
        points = as_point_set(points).cpu().numpy()

        if filename.endswith("pts"):
            with open(filename, 'w') as f:
                for p in points:
                    f.write('\t'.join([repr(float(v)) for v in p])+'\n')

        else:
            raise Exception("Format not supported: "+str(filename))

    @staticmethod
    def has_duplicates(points):
        """
        Returns True if at least one point occurs more than once in the point set
        """
        points = as_point_set(points)
        return th.unique(points, dim=0).size(0) < points.size(0)


def as_point_set(points, dtype=th.float64, device='cpu'):
    """
    Converts the input into a point set tensor of shape (n, dim), where a one dimensional array holds
    n points of dimension 1
    """
    dim = 1 if np.ndim(points) == 1 else None

    return as_points(points, dim=dim, dtype=dtype, device=device)
