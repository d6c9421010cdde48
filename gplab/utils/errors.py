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


class DimensionMismatchError(ValueError):
    """
        Raised if a parameter vector or a point set does not have the expected size
    """
    pass


class PreconditionError(ValueError):
    """
        Raised for invalid input before any numeric work is done
    """
    pass


class NumericalError(ArithmeticError):
    """
        Raised if a factorization or an inversion fails numerically.

        The operation is not retried. Callers may repeat it with a larger
        jitter or observation noise.
    """
    pass


class Unsupported:
    r"""
    Result returned by operations a transformation does not provide.

    An Unsupported object evaluates to False, so callers can write

        result = transformation.inverse_transform()
        if not result:
            ...

    Args:
        operation (str): name of the requested operation
        reason (str): human readable explanation
    """
    def __init__(self, operation, reason=""):
        self.operation = operation
        self.reason = reason

    def __bool__(self):
        return False

    def __eq__(self, other):
        return isinstance(other, Unsupported) and other.operation == self.operation

    def __hash__(self):
        return hash(("Unsupported", self.operation))

    def __repr__(self):
        return "Unsupported(" + repr(self.operation) + ", " + repr(self.reason) + ")"


def is_supported(result):
    return not isinstance(result, Unsupported)
