"""
Denoising autoencoder trained neuron by neuron with Adam and dropout
"""

from dae.activation import Activation
from dae.algorithm import Adam, TrainingConfig, MAX_TRIAL, MAX_GAP
from dae.neuron import Neuron
from dae.autoencoder import DenoisingAutoencoder

__version__ = '0.1.0'
