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
import SimpleITK as sitk

from .errors import PreconditionError


def _as_array(value, dim=None):
    value = np.atleast_1d(np.asarray(value, dtype=np.float64))
    if dim is not None and len(value) == 1:
        value = np.ones(dim)*value[0]
    return value


"""
Create a coordinate grid of arbitrary dimension (physical coordinates)
"""
def compute_coordinate_grid(origin, spacing, size):

    axes = [origin[d] + spacing[d]*np.linspace(0, size[d] - 1, num=int(size[d])) for d in range(len(size))]

    return np.meshgrid(*axes, indexing='ij')


class DiscreteDomain:
    """
        Regular grid of points which is used to discretize a continuous domain

        The domain is defined in physical coordinates by the position of the first point (origin), the
        distance between two neighbouring points (spacing) and the number of points in each space dimension (size).

        origin (float | array): physical coordinate of the first point
        spacing (float | array): distance between two points in each space dimension
        size (int | array): number of points in each space dimension
    """
    def __init__(self, origin, spacing, size, dtype=th.float64, device='cpu'):
        self.size = np.atleast_1d(np.asarray(size)).astype(int)
        self.dim = len(self.size)
        self.origin = _as_array(origin, self.dim)
        self.spacing = _as_array(spacing, self.dim)

        if not (len(self.origin) == self.dim and len(self.spacing) == self.dim):
            raise PreconditionError("origin, spacing and size have to be of the same dimension")
        if np.any(self.size < 1):
            raise PreconditionError("A domain needs at least one point in each dimension. Got size " + str(self.size))
        if np.any(self.spacing <= 0):
            raise PreconditionError("The spacing has to be positive. Got " + str(self.spacing))

        self.dtype = dtype
        self.device = device

        grid = compute_coordinate_grid(self.origin, self.spacing, self.size)
        points = np.stack([g.reshape(-1) for g in grid], axis=1)
        self._points = th.tensor(points, dtype=dtype, device=device)

    @property
    def points(self):
        return self._points

    @property
    def number_of_points(self):
        return self._points.size(0)

    @property
    def extent(self):
        """
        Physical coordinate of the last point
        """
        return self.origin + (self.size - 1)*self.spacing

    def __len__(self):
        return self.number_of_points

    def __repr__(self):
        return "DiscreteDomain(origin=" + str(self.origin.tolist()) + ", spacing=" + str(self.spacing.tolist()) +\
               ", size=" + str(self.size.tolist()) + ")"

    @staticmethod
    def from_itk_image(sitk_image, dtype=th.float64, device='cpu'):
        """
        Creates the domain which is spanned by the pixels of a SimpleITK image

        sitk_image (sitk.SimpleITK.Image): SimpleITK image
        return (DiscreteDomain): domain with the same origin, spacing and size
        """
        if type(sitk_image) == sitk.SimpleITK.Image:
            return DiscreteDomain(sitk_image.GetOrigin(), sitk_image.GetSpacing(), sitk_image.GetSize(),
                                  dtype=dtype, device=device)
        else:
            raise Exception("A SimpleITK image was expected as argument. Got " + str(type(sitk_image)))

    def to_itk_image(self, values):
        """
        Returns a SimpleITK image of a scalar field given on the points of the domain, e.g. a sample or the
        mean of a Gaussian process

        Note: the order of axis is flipped to follow the convention of SimpleITK

        values (th.Tensor | np.ndarray): one value per domain point, in the order of self.points
        return (sitk.SimpleITK.Image): image with the origin and spacing of the domain
        """
        if isinstance(values, th.Tensor):
            values = values.detach().cpu().numpy()
        values = np.asarray(values, dtype=np.float64)

        if values.size != self.number_of_points:
            raise PreconditionError("Expected " + str(self.number_of_points) + " values. Got " + str(values.size))
        if self.dim < 2:
            raise PreconditionError("SimpleITK images need at least 2 space dimensions. Got " + str(self.dim))

        array = values.reshape(self.size.tolist()).transpose()

        itk_image = sitk.GetImageFromArray(array)
        itk_image.SetSpacing(self.spacing.tolist())
        itk_image.SetOrigin(self.origin.tolist())
        return itk_image
