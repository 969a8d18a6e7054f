"""
Training algorithms and related classes
"""

import os

MAX_TRIAL = 300  # upper bound on passes over the training set
MAX_GAP = 0.1    # tolerated reconstruction gap


class Adam(object):
    """Hyperparameters of the Adam optimizer.

    Attributes:
        alpha: float
            Step size.
        beta1: float (between 0 and 1)
            Decay rate of the first moment estimate.
        beta2: float (between 0 and 1)
            Decay rate of the second moment estimate.
        epsilon: float
            Floor added to the denominator of the update.
        rambda: float
            L2 penalty strength applied to the bias update.
    """
    def __init__(self, alpha=0.001, beta1=0.9, beta2=0.999,
                 epsilon=1e-8, rambda=1e-5):
        self.alpha   = alpha
        self.beta1   = beta1
        self.beta2   = beta2
        self.epsilon = epsilon
        self.rambda  = rambda

    def correction(self, t):
        """
        Bias-correction denominators `(1 - beta1**t, 1 - beta2**t)`
        for the `t`th update (`t >= 1`).
        """
        return 1. - self.beta1 ** t, 1. - self.beta2 ** t


class TrainingConfig(object):
    """Constants of the training loop.

    Attributes:
        max_trial: int
            Maximum number of passes over the training set.
        max_gap: float
            Training stops once every reconstructed value is within
            `max_gap` of its clean target.
        adam: Adam
            Optimizer hyperparameters shared by every neuron.
        num_thread: int
            Number of worker threads per layer phase. Defaults to the
            number of processors.
    """
    def __init__(self, max_trial=MAX_TRIAL, max_gap=MAX_GAP, adam=None,
                 num_thread=None):
        if max_trial < 1:
            raise ValueError('TrainingConfig.__init__: max_trial must be positive')
        if max_gap < 0:
            raise ValueError('TrainingConfig.__init__: max_gap must be non-negative')
        self.max_trial  = max_trial
        self.max_gap    = max_gap
        self.adam       = adam if adam is not None else Adam()
        self.num_thread = num_thread or os.cpu_count() or 1
