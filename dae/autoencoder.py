"""
Denoising autoencoder model
"""

import logging
import pickle
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from dae.activation import Activation
from dae.algorithm import TrainingConfig
from dae.neuron import Neuron
from dae.utils import partition

logger = logging.getLogger(__name__)


class DenoisingAutoencoder(object):
    """A denoising autoencoder class.

    A two-layer network (middle and output) that learns to reconstruct
    clean samples from their corrupted versions. Every neuron is trained
    on its own with Adam and dropout; the neurons of a layer are split
    across a pool of worker threads, and the phases of a training step
    (middle forward, output forward, output learning, middle learning)
    run one after the other.

    Attributes:
        num_input: int
            Number of input units, which is also the number of output units.
        compression_rate: float
            Ratio of middle units to input units.
        middle_activation: string or Activation
            Activation of the middle layer. Either 'identity' (default),
            'sigmoid', 'tanh', or 'relu'.
        output_activation: string or Activation
            Activation of the output layer. Defaults to 'identity'.
        dropout: float (between 0 and 1)
            Dropout rate of every neuron. Defaults to `0.0`.
        config: TrainingConfig
            Trial budget, tolerated gap, Adam hyperparameters and number
            of worker threads.
        seed: int
            Random seed for initialization and dropout.

    Non-input Attributes:
        middle_neurons, output_neurons: list of Neuron
            The two layers.
        h, o: numpy.ndarray
            Middle and output values of the latest training sample.
        learned_h, learned_o: numpy.ndarray
            Copies of `h` and `o` kept when `learn` returns.
        success: bool
            Whether the latest `learn` call converged.
        trial: int
            Number of passes made by the latest `learn` call.
        training_error: list of (int, float)
            Mean squared reconstruction error after each pass.
        rng: numpy.random.RandomState
            NumPy random number generator using `seed`.

    Methods:
        __init__, save, load, learn, out, reconstruct, compute_error,
        get_middle_output, get_current_middle_neuron_num
    """

    def __init__(self, num_input, compression_rate,
                 middle_activation='identity', output_activation='identity',
                 dropout=0.0, config=None, seed=None):
        """
        Denoising autoencoder initializer.
        """
        if num_input < 1:
            raise ValueError('DenoisingAutoencoder.__init__: ' +
                             'num_input must be positive')
        if compression_rate <= 0:
            raise ValueError('DenoisingAutoencoder.__init__: ' +
                             'compression_rate must be positive')

        # Layer sizes (round half up)
        self.input_neuron_num  = int(num_input)
        self.middle_neuron_num = int(np.floor(num_input * compression_rate + 0.5))
        self.output_neuron_num = self.input_neuron_num
        if self.middle_neuron_num < 1:
            raise ValueError('DenoisingAutoencoder.__init__: ' +
                             'compression_rate leaves no middle neurons')

        # Attributes
        self.compression_rate  = compression_rate
        self.middle_activation = middle_activation
        self.output_activation = output_activation
        self.dropout           = dropout
        self.config            = config if config is not None else TrainingConfig()
        self.num_thread        = self.config.num_thread
        self.seed              = seed

        if not isinstance(self.middle_activation, Activation):
            self.middle_activation = Activation(self.middle_activation)
        if not isinstance(self.output_activation, Activation):
            self.output_activation = Activation(self.output_activation)

        # One generator for initialization and dropout
        self.rng = np.random.RandomState(seed)

        # Layers (Glorot-uniform weights)
        c = np.sqrt(6. / (self.input_neuron_num + self.middle_neuron_num))
        self.middle_neurons = [
            Neuron(self.input_neuron_num, self.middle_activation, dropout,
                   adam=self.config.adam, rng=self.rng, init_bound=c)
            for _ in range(self.middle_neuron_num)]
        self.output_neurons = [
            Neuron(self.middle_neuron_num, self.output_activation, dropout,
                   adam=self.config.adam, rng=self.rng, init_bound=c)
            for _ in range(self.output_neuron_num)]

        # Buffers
        self.h = np.zeros(self.middle_neuron_num)
        self.o = np.zeros(self.output_neuron_num)
        self.learned_h = None
        self.learned_o = None

        # Training updates
        self.success = False
        self.trial = 0
        self.training_error = []

        logger.debug('DenoisingAutoencoder: %d -> %d -> %d, %d threads',
                     self.input_neuron_num, self.middle_neuron_num,
                     self.output_neuron_num, self.num_thread)

    def save(self, path):
        """
        Save the current model in `path`.
        """
        with open(path, 'wb') as f:
            pickle.dump(self, f)

    @staticmethod
    def load(path):
        """
        Load a model saved by the function `save`.
        """
        with open(path, 'rb') as f:
            dae = pickle.load(f)
        if isinstance(dae, DenoisingAutoencoder):
            return dae
        else:
            raise TypeError('Loaded object is not a `DenoisingAutoencoder` object.')

    def get_current_middle_neuron_num(self):
        return self.middle_neuron_num

    def learn(self, input, noisy_input, verbose=False):
        """Train the autoencoder to map `noisy_input` back to `input`.

        Each pass goes through the samples in order. For every sample,
        fresh dropout masks are drawn, the noisy sample is propagated
        forward, and both layers learn from the squared reconstruction
        error. After each pass the whole noisy set is reconstructed in
        inference mode; training stops as soon as every reconstructed
        value is within `config.max_gap` of its clean target, or after
        `config.max_trial` passes.

        The test is on the largest gap, not the mean, so a converged model
        reconstructs every training sample within `max_gap` through `out`.
        It is strict: with the default `Adam(alpha=0.001)` and 300 trials
        even a single pair like `[1.0, 0.0]` usually stops short of it.
        Small problems need a larger step size or more trials, e.g.
        `TrainingConfig(max_trial=3000, adam=Adam(alpha=0.01))`.

        Args:
            input: numpy.ndarray
                Clean data of size `n` (sample size) by `num_input`.
            noisy_input: numpy.ndarray
                Corrupted data of the same size, row `i` paired with
                row `i` of `input`.
            verbose: bool
                If true, report the error of every pass to stdout.
        Returns:
            status: string
                Human-readable outcome. `self.success` tells whether
                training converged; the weights are kept either way.
        Raises:
            ValueError: The two datasets are empty, not rectangular, or
                do not match each other or `num_input`.
        """
        X = self._check_data(input, 'learn', 'input')
        X_noisy = self._check_data(noisy_input, 'learn', 'noisy_input')
        if X.shape != X_noisy.shape:
            raise ValueError('DenoisingAutoencoder.learn: input and noisy_input ' +
                             'have different shapes {} and {}'
                             .format(X.shape, X_noisy.shape))
        n = X.shape[0]
        max_trial, max_gap = self.config.max_trial, self.config.max_gap

        self.success = False
        self.trial = 0
        self.training_error = []
        error = gap = np.inf

        if verbose:
            print('|-------|---------------------------|---------------------------|')
            print('| Trial |    Mean Squared Error     |          Max Gap          |')
            print('|-------|---------------------------|---------------------------|')

        with ThreadPoolExecutor(max_workers=self.num_thread) as pool:
            for t in range(1, max_trial + 1):

                for i in range(n):
                    self._learn_sample(pool, X[i, :], X_noisy[i, :])

                X_hat = self._reconstruct(pool, X_noisy)
                error = ((X - X_hat) ** 2).mean()
                gap = np.abs(X - X_hat).max()
                self.trial = t
                self.training_error.append((t, error))

                if verbose:
                    print('|  {:3d}  |         {:9.5f}         |         {:9.5f}         |'.
                          format(t, error, gap))

                if gap <= max_gap:
                    self.success = True
                    break

        if verbose:
            print('|-------|---------------------------|---------------------------|')

        self.learned_h = self.h.copy()
        self.learned_o = self.o.copy()

        if self.success:
            status = 'Learning succeeded in {:d} trials (error {:.5f})'.format(
                self.trial, error)
            logger.info(status)
        else:
            status = 'Learning failed after {:d} trials (error {:.5f}, gap {:.5f})'.format(
                self.trial, error, gap)
            logger.info(status)
        return status

    def out(self, input, show_result=False):
        """Reconstruct a single sample (inference, no dropout, no learning).

        Args:
            input: numpy.ndarray
                Vector of length `num_input`.
            show_result: bool
                If true, print the input, middle and output values.
        Returns:
            o: numpy.ndarray
                Reconstruction of length `num_input`.
        """
        x = np.asarray(input, dtype=float)
        if x.shape != (self.input_neuron_num,):
            raise ValueError('DenoisingAutoencoder.out: expected a vector of ' +
                             'length {}, got shape {}'
                             .format(self.input_neuron_num, x.shape))

        with ThreadPoolExecutor(max_workers=self.num_thread) as pool:
            h, o = self._infer(pool, x)

        if show_result:
            print('input : ' + ' '.join('{:9.5f}'.format(v) for v in x))
            print('middle: ' + ' '.join('{:9.5f}'.format(v) for v in h))
            print('output: ' + ' '.join('{:9.5f}'.format(v) for v in o))

        return o

    def reconstruct(self, X):
        """Reconstruct every row of `X` using `out`.

        Args:
            X: numpy.ndarray
                Input data of size `n` (sample size) by `num_input`.
        Returns:
            X_hat: numpy.ndarray
                Reconstructions of size `n` by `num_input`.
        """
        X = self._check_data(X, 'reconstruct', 'X')
        with ThreadPoolExecutor(max_workers=self.num_thread) as pool:
            return self._reconstruct(pool, X)

    def compute_error(self, X, X_noisy=None):
        """Mean squared error between `X` and the reconstruction of
        `X_noisy` (or of `X` itself if `X_noisy` is not given).

        This is the error recorded in `training_error`.
        """
        X = self._check_data(X, 'compute_error', 'X')
        X_hat = self.reconstruct(X if X_noisy is None else X_noisy)
        if X_hat.shape != X.shape:
            raise ValueError('DenoisingAutoencoder.compute_error: ' +
                             'X and X_noisy have different shapes')
        return ((X - X_hat) ** 2).mean()

    def get_middle_output(self, noisy_input):
        """Middle layer values (inference mode) of each sample.

        These are the compressed features, e.g. the input of the next
        autoencoder when stacking.

        Args:
            noisy_input: numpy.ndarray
                Data of size `n` by `num_input`.
        Returns:
            H: numpy.ndarray
                Size `n` by `get_current_middle_neuron_num()`.
        """
        X = self._check_data(noisy_input, 'get_middle_output', 'noisy_input')
        H = np.zeros((X.shape[0], self.middle_neuron_num))
        with ThreadPoolExecutor(max_workers=self.num_thread) as pool:
            for i in range(X.shape[0]):
                self._phase(pool, self._forward_thread, self.middle_neurons,
                            X[i, :], H[i, :], False)
        return H

    def _check_data(self, X, method, name):
        try:
            X = np.asarray(X, dtype=float)
        except ValueError:
            raise ValueError('DenoisingAutoencoder.{}: {} is not a rectangular dataset'
                             .format(method, name))
        if X.ndim != 2 or X.shape[0] == 0:
            raise ValueError('DenoisingAutoencoder.{}: {} must be a non-empty '
                             '2D dataset'.format(method, name))
        if X.shape[1] != self.input_neuron_num:
            raise ValueError('DenoisingAutoencoder.{}: {} has width {}, expected {}'
                             .format(method, name, X.shape[1], self.input_neuron_num))
        return X

    def _learn_sample(self, pool, x, x_noisy):
        """
        One training step on the pair (`x`, `x_noisy`).
        """
        # Dropout masks (drawn here so that a seed fixes the whole run)
        for neuron in self.middle_neurons:
            neuron.dropout(self.rng.uniform())
        for neuron in self.output_neurons:
            neuron.dropout(self.rng.uniform())

        # Forward propagation
        self._phase(pool, self._forward_thread, self.middle_neurons,
                    x_noisy, self.h, True)
        self._phase(pool, self._forward_thread, self.output_neurons,
                    self.h, self.o, True)

        # Output layer: derivative of `mean_squared_error` times f'(o)
        mask = np.array([neuron.dropout_mask for neuron in self.output_neurons])
        delta_o = (self.o - x) * self.output_activation.grad_output(self.o) * mask
        W = np.array([neuron.weights for neuron in self.output_neurons])
        self._phase(pool, self._learn_thread, self.output_neurons,
                    delta_o, self.h)

        # Middle layer, through the weights used in the forward pass
        delta_h = delta_o.dot(W) * self.middle_activation.grad_output(self.h)
        self._phase(pool, self._learn_thread, self.middle_neurons,
                    delta_h, x_noisy)

    def _infer(self, pool, x):
        h = np.zeros(self.middle_neuron_num)
        o = np.zeros(self.output_neuron_num)
        self._phase(pool, self._forward_thread, self.middle_neurons, x, h, False)
        self._phase(pool, self._forward_thread, self.output_neurons, h, o, False)
        return h, o

    def _reconstruct(self, pool, X):
        X_hat = np.zeros(X.shape)
        for i in range(X.shape[0]):
            X_hat[i, :] = self._infer(pool, X[i, :])[1]
        return X_hat

    def _phase(self, pool, fn, neurons, *args):
        """
        Run `fn` on disjoint neuron ranges and wait for all of them.
        """
        futures = [pool.submit(fn, neurons, begin, end, *args)
                   for begin, end in partition(len(neurons), self.num_thread)]
        for future in futures:
            future.result()

    @staticmethod
    def _forward_thread(neurons, begin, end, x, buf, train):
        for j in range(begin, end):
            if train:
                buf[j] = neurons[j].learn_output(x)
            else:
                buf[j] = neurons[j].output(x)

    @staticmethod
    def _learn_thread(neurons, begin, end, delta, x):
        for j in range(begin, end):
            neurons[j].learn(delta[j], x)
