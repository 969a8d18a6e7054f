"""
Activation functions
"""

import numpy as np
from scipy.special import expit

# Integer codes follow the order of `TYPES`
TYPES = ('identity', 'sigmoid', 'tanh', 'relu')


class Activation(object):
    """A class of activation functions for neurons.

    Attributes:
        type: string or int
            Either 'identity' (default), 'sigmoid', 'tanh', or 'relu',
            or the corresponding integer code 0, 1, 2, 3.
    Methods:
        eval, grad, grad_output
    """

    def __init__(self, type='identity'):
        if isinstance(type, (int, np.integer)) and not isinstance(type, bool):
            if not 0 <= type < len(TYPES):
                raise ValueError('Activation.__init__: ' +
                                 'activation code {} not recognized'.format(type))
            type = TYPES[type]
        self.type = type
        if self.type not in TYPES:
            raise ValueError('Activation.__init__: ' +
                             'activation type {!r} not recognized'.format(type))

    @property
    def code(self):
        return TYPES.index(self.type)

    def eval(self, a):
        """
        Evaluate the activation at value `a` (vectorized).
        """
        if self.type == 'sigmoid':
            return expit(a)
        elif self.type == 'tanh':
            return np.tanh(a)
        elif self.type == 'relu':
            return a * (a > 0)
        else:  # identity
            return a

    def grad(self, a):
        """
        Compute the gradient of the activation at value `a` (vectorized).
        """
        return self.grad_output(self.eval(a))

    def grad_output(self, y):
        """
        Compute the gradient of the activation given the *activated*
        value `y = eval(a)`. Neurons only keep their outputs, so this is
        the form used during backpropagation.
        """
        if self.type == 'sigmoid':
            return y * (1. - y)
        elif self.type == 'tanh':
            return 1. - y ** 2
        elif self.type == 'relu':
            return (np.asarray(y) > 0).astype(float)
        else:  # identity
            return np.ones_like(y, dtype=float)

    def __eq__(self, other):
        return isinstance(other, Activation) and self.type == other.type

    def __ne__(self, other):
        return not self == other

    def __repr__(self):
        return 'Activation({!r})'.format(self.type)
