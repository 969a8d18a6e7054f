import copy
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from dae.algorithm import Adam, TrainingConfig, MAX_GAP
from dae.autoencoder import DenoisingAutoencoder


def trained_pair():
    config = TrainingConfig(max_trial=3000, adam=Adam(alpha=0.01))
    dae = DenoisingAutoencoder(2, 0.5, config=config, seed=0)
    status = dae.learn([[1.0, 0.0]], [[1.0, 0.0]])
    return dae, status


def weights_of(dae):
    return [n.weights.copy() for n in dae.middle_neurons + dae.output_neurons]


def test_middle_neuron_num():
    assert DenoisingAutoencoder(10, 0.3).get_current_middle_neuron_num() == 3
    assert DenoisingAutoencoder(4, 0.5).get_current_middle_neuron_num() == 2
    assert DenoisingAutoencoder(5, 0.5).get_current_middle_neuron_num() == 3


def test_topology():
    dae = DenoisingAutoencoder(6, 0.5, seed=1)
    assert len(dae.middle_neurons) == 3
    assert len(dae.output_neurons) == 6
    assert all(n.num_input == 6 for n in dae.middle_neurons)
    assert all(n.num_input == 3 for n in dae.output_neurons)


def test_invalid_construction():
    with pytest.raises(ValueError):
        DenoisingAutoencoder(0, 0.5)
    with pytest.raises(ValueError):
        DenoisingAutoencoder(4, 0.0)
    with pytest.raises(ValueError):
        DenoisingAutoencoder(4, 0.1)  # rounds to zero middle neurons


def test_end_to_end_reconstruction():
    dae, status = trained_pair()
    assert dae.success
    assert status.startswith('Learning succeeded')
    assert dae.trial <= 3000
    reconstruction = dae.out([1.0, 0.0], False)
    assert np.all(np.abs(reconstruction - [1.0, 0.0]) <= MAX_GAP)


def test_error_decreases_over_training():
    dae, _ = trained_pair()
    errors = [e for _, e in dae.training_error]
    assert len(errors) == dae.trial
    assert errors[-1] <= errors[0]


def test_learned_buffers_kept():
    dae, _ = trained_pair()
    assert dae.learned_h.shape == (1,)
    assert dae.learned_o.shape == (2,)


def test_out_is_deterministic_and_side_effect_free():
    dae = DenoisingAutoencoder(5, 0.6, middle_activation='tanh',
                               output_activation='sigmoid', dropout=0.3, seed=2)
    before = weights_of(dae)
    x = [0.2, 0.4, 0.6, 0.8, 1.0]
    first = dae.out(x, False)
    second = dae.out(x, False)
    assert np.array_equal(first, second)
    for w0, w1 in zip(before, weights_of(dae)):
        assert np.array_equal(w0, w1)
    assert all(n.iteration == 0 for n in dae.middle_neurons)


def test_out_show_result(capsys):
    dae = DenoisingAutoencoder(2, 0.5, seed=0)
    dae.out([1.0, 0.0], True)
    printed = capsys.readouterr().out
    assert 'input' in printed and 'middle' in printed and 'output' in printed


def test_get_middle_output_shape():
    dae = DenoisingAutoencoder(6, 0.5, seed=3)
    X = np.random.RandomState(0).uniform(size=(4, 6))
    H = dae.get_middle_output(X)
    assert len(H) == 4
    assert all(len(h) == dae.get_current_middle_neuron_num() for h in H)


def test_get_middle_output_matches_out():
    dae = DenoisingAutoencoder(3, 0.7, middle_activation='sigmoid', seed=4)
    x = [0.1, 0.5, 0.9]
    H = dae.get_middle_output([x])
    expected = [n.output(x) for n in dae.middle_neurons]
    assert np.allclose(H[0], expected)


def test_reconstruct_matches_out():
    dae = DenoisingAutoencoder(3, 0.7, seed=5)
    X = np.array([[0.1, 0.5, 0.9], [1.0, 0.0, 0.5]])
    X_hat = dae.reconstruct(X)
    assert np.allclose(X_hat[1], dae.out(X[1]))
    assert dae.compute_error(X) == pytest.approx(((X - X_hat) ** 2).mean())


def test_failed_training_keeps_weights():
    config = TrainingConfig(max_trial=2, max_gap=0.0, num_thread=4)
    dae = DenoisingAutoencoder(8, 0.5, middle_activation='relu',
                               dropout=0.2, config=config, seed=6)
    before = weights_of(dae)
    X = np.random.RandomState(1).uniform(size=(5, 8))
    status = dae.learn(X, X * 0.9)
    assert not dae.success
    assert status.startswith('Learning failed')
    assert 'gap' in status
    assert dae.trial == 2
    assert len(dae.training_error) == 2
    assert any(not np.array_equal(w0, w1)
               for w0, w1 in zip(before, weights_of(dae)))


def test_dropout_skips_some_updates():
    config = TrainingConfig(max_trial=3, max_gap=0.0)
    dae = DenoisingAutoencoder(4, 0.5, dropout=0.5, config=config, seed=7)
    X = np.eye(4)
    dae.learn(X, X)
    iterations = [n.iteration for n in dae.middle_neurons + dae.output_neurons]
    assert all(i <= 12 for i in iterations)
    assert any(i < 12 for i in iterations)


def test_same_seed_same_model():
    config = TrainingConfig(max_trial=5, max_gap=0.0, num_thread=3)
    X = np.random.RandomState(2).uniform(size=(3, 4))
    models = []
    for _ in range(2):
        dae = DenoisingAutoencoder(4, 0.5, dropout=0.25, config=config, seed=11)
        dae.learn(X, X)
        models.append(dae)
    for w0, w1 in zip(weights_of(models[0]), weights_of(models[1])):
        assert np.array_equal(w0, w1)


def test_thread_count_does_not_change_result():
    X = np.random.RandomState(3).uniform(size=(3, 6))
    results = []
    for num_thread in (1, 4):
        config = TrainingConfig(max_trial=4, max_gap=0.0, num_thread=num_thread)
        dae = DenoisingAutoencoder(6, 0.5, dropout=0.1, config=config, seed=12)
        dae.learn(X, X)
        results.append(dae.out(X[0]))
    assert np.allclose(results[0], results[1])


def test_verbose_learning(capsys):
    config = TrainingConfig(max_trial=2, max_gap=0.0)
    dae = DenoisingAutoencoder(2, 0.5, config=config, seed=0)
    dae.learn([[1.0, 0.0]], [[0.9, 0.1]], verbose=True)
    assert 'Trial' in capsys.readouterr().out


@pytest.mark.parametrize('clean, noisy', [
    ([[1.0, 0.0]], [[1.0, 0.0], [0.0, 1.0]]),
    ([[1.0, 0.0, 0.0]], [[1.0, 0.0, 0.0]]),
    ([], []),
    ([[1.0, 0.0], [1.0]], [[1.0, 0.0], [1.0, 0.0]]),
])
def test_learn_rejects_malformed_data(clean, noisy):
    dae = DenoisingAutoencoder(2, 0.5, seed=0)
    before = weights_of(dae)
    with pytest.raises(ValueError):
        dae.learn(clean, noisy)
    for w0, w1 in zip(before, weights_of(dae)):
        assert np.array_equal(w0, w1)


def test_out_rejects_wrong_width():
    dae = DenoisingAutoencoder(2, 0.5)
    with pytest.raises(ValueError):
        dae.out([1.0, 0.0, 0.0])


def test_save_and_load(tmp_path):
    dae = DenoisingAutoencoder(4, 0.5, seed=8)
    path = str(tmp_path / 'dae.pkl')
    dae.save(path)
    loaded = DenoisingAutoencoder.load(path)
    x = [0.3, 0.1, 0.4, 0.1]
    assert np.array_equal(loaded.out(x), dae.out(x))


def test_load_rejects_other_objects(tmp_path):
    import pickle
    path = tmp_path / 'other.pkl'
    with open(str(path), 'wb') as f:
        pickle.dump({'not': 'a model'}, f)
    with pytest.raises(TypeError):
        DenoisingAutoencoder.load(str(path))


def training_loss(dae, x, x_noisy):
    h = [n.learn_output(x_noisy) for n in dae.middle_neurons]
    o = np.array([n.learn_output(h) for n in dae.output_neurons])
    return 0.5 * ((o - x) ** 2).sum()


def test_deltas_match_finite_differences():
    config = TrainingConfig(num_thread=2)
    dae = DenoisingAutoencoder(4, 0.5, middle_activation='sigmoid',
                               output_activation='tanh', config=config, seed=9)
    x = np.array([0.9, 0.1, 0.4, 0.7])
    x_noisy = np.array([0.9, 0.0, 0.4, 0.0])

    # delta of a neuron is the derivative of the loss w.r.t. its bias
    eps = 1e-6
    expected = []
    for neuron in dae.middle_neurons + dae.output_neurons:
        bias = neuron.bias
        neuron.bias = bias + eps
        up = training_loss(dae, x, x_noisy)
        neuron.bias = bias - eps
        down = training_loss(dae, x, x_noisy)
        neuron.bias = bias
        expected.append((up - down) / (2 * eps))

    trained = copy.deepcopy(dae)
    with ThreadPoolExecutor(max_workers=2) as pool:
        trained._learn_sample(pool, x, x_noisy)
    deltas = [n.delta for n in trained.middle_neurons + trained.output_neurons]
    assert deltas == pytest.approx(expected, rel=1e-5, abs=1e-8)
