"""
Neuron class
"""

import numpy as np

from dae.activation import Activation
from dae.algorithm import Adam


class Neuron(object):
    """A single unit of a layer, trained on its own with Adam.

    The neuron owns its incoming weights, its bias, and the Adam moment
    estimates of every weight. Only the dropout mask and `delta` change
    from sample to sample; everything else accumulates over training.

    Attributes:
        num_input: int
            Number of incoming connections (width of the previous layer).
        activation: string, int or Activation
            Either 'identity' (default), 'sigmoid', 'tanh', or 'relu',
            the corresponding integer code, or an `Activation` instance.
        dropout_rate: float (between 0 and 1)
            Probability of the neuron being dropped for a training sample.
        weights: array-like or None
            Pre-trained weights of length `num_input`. Random if `None`.
        bias: float or None
            Pre-trained bias. Uniform in [0, 1) if `None`.
        m, nu: array-like or None
            Pre-trained first and second moment estimates. Zero if `None`.
        iteration: int
            Number of updates already applied.
        adam: Adam
            Optimizer hyperparameters. Defaults to `Adam()`.
        rng: numpy.random.RandomState
            Generator used for random initialization.
        init_bound: float
            Random weights are drawn uniformly from `[-init_bound, init_bound)`.

    Non-input attributes:
        dropout_mask: float
            1.0 if the neuron takes part in the current sample, else 0.0.
        delta: float
            Error signal given to the latest `learn` call.

    Methods:
        __init__, dropout, output, learn_output, learn, params,
        get_weight, get_m, get_nu
    """

    def __init__(self, num_input, activation='identity', dropout_rate=0.0,
                 weights=None, bias=None, m=None, nu=None, iteration=0,
                 adam=None, rng=None, init_bound=1.0):
        """
        Neuron initializer.
        """
        if num_input < 1:
            raise ValueError('Neuron.__init__: num_input must be positive')
        if not 0.0 <= dropout_rate < 1.0:
            raise ValueError('Neuron.__init__: dropout_rate must be in [0, 1)')

        # Attributes
        self.num_input    = int(num_input)
        self.activation   = activation
        self.dropout_rate = float(dropout_rate)
        self.iteration    = int(iteration)
        self.adam         = adam if adam is not None else Adam()

        if not isinstance(self.activation, Activation):
            self.activation = Activation(self.activation)

        # Weight and bias initialization
        if rng is None:
            rng = np.random.RandomState()
        if weights is None:
            self.weights = rng.uniform(-init_bound, init_bound, size=self.num_input)
        else:
            self.weights = self._vector(weights, 'weights')
        self.bias = rng.uniform() if bias is None else float(bias)

        # Adam moment estimates
        self.m  = np.zeros(self.num_input) if m is None else self._vector(m, 'm')
        self.nu = np.zeros(self.num_input) if nu is None else self._vector(nu, 'nu')

        # Per-sample state
        self.dropout_mask = 1.0
        self.delta        = 0.0

    def _vector(self, values, name):
        v = np.array(values, dtype=float)
        if v.shape != (self.num_input,):
            raise ValueError('Neuron.__init__: {} must have length {}, got shape {}'
                             .format(name, self.num_input, v.shape))
        return v

    def _check_input(self, input_values):
        x = np.asarray(input_values, dtype=float)
        if x.shape != (self.num_input,):
            raise ValueError('Neuron: expected {} input values, got shape {}'
                             .format(self.num_input, x.shape))
        return x

    def dropout(self, random_value):
        """
        Decide whether the neuron is dropped for the next sample, given a
        uniform draw from [0, 1).
        """
        self.dropout_mask = 0.0 if random_value < self.dropout_rate else 1.0

    def output(self, input_values):
        """
        Inference output. Weights and bias are scaled by the keep
        probability `1 - dropout_rate`; the dropout mask is ignored.
        """
        x = self._check_input(input_values)
        keep = 1. - self.dropout_rate
        a = self.bias * keep + x.dot(self.weights * keep)
        return float(self.activation.eval(a))

    def learn_output(self, input_values):
        """
        Training output: full weights, multiplied by the dropout mask so
        that a dropped neuron contributes nothing downstream.
        """
        x = self._check_input(input_values)
        a = self.bias + x.dot(self.weights)
        return float(self.activation.eval(a)) * self.dropout_mask

    def learn(self, delta, input_values):
        """
        Update the weights with Adam and the bias with plain gradient
        descent, given the error signal `delta` of this neuron and the
        values `input_values` it received in the forward pass.

        A dropped neuron only records `delta`.
        """
        self.delta = float(delta)
        if self.dropout_mask == 0.0:
            return

        x = self._check_input(input_values)
        adam = self.adam
        self.iteration += 1
        c1, c2 = adam.correction(self.iteration)

        grad = self.delta * x
        self.m  = adam.beta1 * self.m  + (1. - adam.beta1) * grad
        self.nu = adam.beta2 * self.nu + (1. - adam.beta2) * grad ** 2
        self.weights = self.weights - adam.alpha * (self.m / c1) / \
            (np.sqrt(self.nu / c2) + adam.epsilon)

        self.bias -= adam.alpha * self.delta - adam.alpha * adam.rambda * self.bias

    def get_weight(self, i):
        return float(self.weights[i])

    def get_m(self, i):
        return float(self.m[i])

    def get_nu(self, i):
        return float(self.nu[i])

    def params(self):
        """
        Everything needed to rebuild this neuron with `Neuron(**params)`.
        """
        return {
            'num_input': self.num_input,
            'weights': self.weights.tolist(),
            'm': self.m.tolist(),
            'nu': self.nu.tolist(),
            'iteration': self.iteration,
            'bias': self.bias,
            'activation': self.activation.type,
            'dropout_rate': self.dropout_rate,
        }

    def __str__(self):
        return ' '.join('{:.6f}'.format(w) for w in self.weights)

    def __repr__(self):
        return 'Neuron(num_input={}, activation={!r}, iteration={})'.format(
            self.num_input, self.activation.type, self.iteration)
