"""
Visualization tools
"""

import numpy as np
import matplotlib.pyplot as plt


def plot_reconstructions(dae, X, X_noisy=None, title='Reconstructions'):
    """Draws clean, noisy and reconstructed samples side by side.

    Each sample gets one row of three heat strips, so that the effect of
    the corruption and how much of it the model removes can be read off
    column by column.

    Args:
        dae: DenoisingAutoencoder
            Model used to reconstruct `X_noisy`.
        X: numpy.ndarray
            Clean data of size `n` by `num_input`.
        X_noisy: numpy.ndarray
            Corrupted data of the same size. Defaults to `X`.
    Returns:
        fig: matplotlib.figure.Figure
    """
    X = np.atleast_2d(np.asarray(X, dtype=float))
    X_noisy = X if X_noisy is None else np.atleast_2d(np.asarray(X_noisy, dtype=float))
    if X.shape != X_noisy.shape:
        raise ValueError('plot_reconstructions: X and X_noisy have different shapes')
    n = X.shape[0]
    if n > 50:
        raise ValueError('plot_reconstructions: too many samples (more than 50)')
    X_hat = dae.reconstruct(X_noisy)

    vmin = min(X.min(), X_noisy.min(), X_hat.min())
    vmax = max(X.max(), X_noisy.max(), X_hat.max())
    fig, axes = plt.subplots(n, 3, figsize=(6, 0.6 * n + 0.8), squeeze=False)
    for i in range(n):
        for ax, row in zip(axes[i], (X[i], X_noisy[i], X_hat[i])):
            ax.matshow(row[np.newaxis, :], cmap='gray', vmin=vmin, vmax=vmax)
            ax.axis('off')
    for ax, label in zip(axes[0], ('clean', 'noisy', 'reconstruction')):
        ax.set_title(label, fontsize=8)
    fig.suptitle(title)
    return fig


def plot_training_error(dae, title='Training error'):
    """Plots the reconstruction error recorded after each pass of `learn`.

    Args:
        dae: DenoisingAutoencoder
            A model on which `learn` has been called.
    Returns:
        fig: matplotlib.figure.Figure
    """
    if not dae.training_error:
        raise ValueError('plot_training_error: model has no training history')
    trials, errors = zip(*dae.training_error)

    fig, ax = plt.subplots()
    ax.plot(trials, errors, marker='.', label='mean squared error')
    if dae.config.max_gap > 0:
        ax.axhline(dae.config.max_gap ** 2, color='gray', linestyle='--',
                   label='max_gap squared')
    ax.set_xlabel('trial')
    ax.set_ylabel('error')
    ax.set_yscale('log')
    ax.legend()
    ax.set_title(title)
    return fig
