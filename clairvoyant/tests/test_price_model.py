"""
Tests for the price model and its training loop.
"""

import math

import torch
import pytest

from clairvoyant.config import ClairvoyantConfig
from clairvoyant.model import PriceModel
from clairvoyant.training import PriceModelTrainer


def small_config(**overrides):
    options = dict(window_length=4, plot_path=None)
    options.update(overrides)
    return ClairvoyantConfig(**options)


def test_parameter_shapes():
    """Test w1, b1 and values shapes follow S = W + 1"""
    config = small_config()
    model = PriceModel([[1.0, 2.0, 3.0, 4.0], [5.0, 6.0, 7.0, 8.0]], config)

    assert model.size == 5
    assert model.parameters['w1'].shape == (5, 5)
    assert model.parameters['b1'].shape == (5, 1)
    assert model.parameters['values'].shape == (5, 2)


def test_values_duplicate_closing_price():
    """Test each column is the window followed by its closing price"""
    config = small_config()
    model = PriceModel([[1.0, 2.0, 3.0, 4.0], [5.0, 6.0, 7.0, 8.0]], config)

    values = model.parameters['values'].data
    assert values[:, 0].tolist() == [1.0, 2.0, 3.0, 4.0, 4.0]
    assert values[:, 1].tolist() == [5.0, 6.0, 7.0, 8.0, 8.0]


def test_causal_initialization():
    """Test w1 is lower-triangular with depth-normalized entries"""
    config = small_config(window_length=20)
    model = PriceModel([[1.0] * 20], config)
    w1 = model.parameters['w1'].data
    b1 = model.parameters['b1'].data
    size = model.size

    assert torch.count_nonzero(torch.triu(w1, diagonal=1)) == 0
    for i in range(size):
        assert w1[i, :i + 1].abs().max().item() <= 1 / math.sqrt(i + 1) + 1e-6
    assert b1.abs().max().item() <= 1 / math.sqrt(size) + 1e-6
    assert torch.count_nonzero(torch.tril(w1)) > 0


def test_initialization_is_seeded():
    """Test the same seed reproduces the same parameters"""
    windows = [[1.0, 2.0, 3.0, 4.0]]
    first = PriceModel(windows, small_config(seed=5))
    second = PriceModel(windows, small_config(seed=5))
    third = PriceModel(windows, small_config(seed=6))

    assert torch.equal(first.parameters['w1'].data, second.parameters['w1'].data)
    assert torch.equal(first.parameters['b1'].data, second.parameters['b1'].data)
    assert not torch.equal(first.parameters['w1'].data, third.parameters['w1'].data)


def test_mismatched_windows_rejected():
    """Test windows must all have length S - 1"""
    config = small_config()

    with pytest.raises(ValueError):
        PriceModel([[1.0, 2.0, 3.0, 4.0], [1.0, 2.0, 3.0]], config)

    with pytest.raises(ValueError):
        PriceModel([], config)


def test_cost_gradients():
    """Test cost and gradients against the closed form"""
    config = small_config(dtype='float64')
    model = PriceModel([[1.0, 2.0, 3.0, 4.0], [2.0, 1.0, 0.5, 3.0]], config)
    w1 = model.parameters['w1'].data.clone()
    b1 = model.parameters['b1'].data.clone()
    values = model.parameters['values'].data.clone()

    loss = model.loss_and_gradients()

    l1 = w1 @ values + b1
    count = values.numel()
    upstream = 2 * (l1 - values) / count
    assert loss == pytest.approx(((l1 - values) ** 2).mean().item())
    assert torch.allclose(model.parameters['w1'].grad, upstream @ values.t())
    assert torch.allclose(model.parameters['b1'].grad, upstream.sum(dim=1, keepdim=True))
    assert torch.allclose(model.parameters['values'].grad, w1.t() @ upstream - upstream)


def test_loss_and_gradients_resets():
    """Test gradients do not leak between evaluations"""
    model = PriceModel([[1.0, 2.0, 3.0, 4.0]], small_config())

    model.loss_and_gradients()
    first = model.parameters['w1'].grad.clone()
    model.loss_and_gradients()

    assert torch.equal(model.parameters['w1'].grad, first)


def test_constant_series_converges():
    """Test a constant window drives the loss below threshold within the iteration cap"""
    config = small_config()
    model = PriceModel([[2.0] * config.window_length], config)
    trainer = PriceModelTrainer(model, config)

    result = trainer.train()

    assert result.converged
    assert result.final_loss < config.loss_threshold
    assert result.iterations <= config.iterations
    assert all(l >= config.loss_threshold for l in result.losses[:-1])


def test_full_window_stops_at_iteration_cap():
    """Test a constant 251-day window runs all iterations without reaching the threshold"""
    config = ClairvoyantConfig(plot_path=None)
    model = PriceModel([[1.0] * config.window_length], config)

    result = PriceModelTrainer(model, config).train()

    # Only the closing row of values moves, so the bias and causal weights
    # alone cannot bring the full window under the threshold in 100 steps
    assert not result.converged
    assert result.iterations == config.iterations
    assert result.final_loss > config.loss_threshold
    assert all(math.isfinite(l) for l in result.losses)


def test_training_updates_only_trainable_regions():
    """Test the upper triangle of w1 and the price windows stay fixed"""
    config = small_config(iterations=5, loss_threshold=0.0)
    windows = [[1.0, 2.0, 3.0, 4.0], [4.0, 3.0, 2.0, 1.0]]
    model = PriceModel(windows, config)
    values_before = model.parameters['values'].data.clone()
    w1_before = model.parameters['w1'].data.clone()

    result = PriceModelTrainer(model, config).train()

    w1 = model.parameters['w1'].data
    values = model.parameters['values'].data
    assert result.iterations == 5
    assert not result.converged
    assert torch.count_nonzero(torch.triu(w1, diagonal=1)) == 0
    assert not torch.equal(torch.tril(w1), torch.tril(w1_before))
    assert torch.equal(values[:-1], values_before[:-1])
    assert not torch.equal(values[-1], values_before[-1])


def test_trainer_registers_parameter_buffers():
    """Test the optimizer updates the model's own buffers from graph gradients"""
    config = small_config()
    model = PriceModel([[1.0, 2.0, 3.0, 4.0]], config)
    trainer = PriceModelTrainer(model, config)

    registered = [group['params'][0] for group in trainer.optimizer.param_groups]
    assert registered[0] is model.parameters['w1'].data
    assert registered[2] is model.parameters['values'].data

    loss, norm = trainer.train_step()

    assert loss > 0
    assert norm == pytest.approx(trainer.optimizer.grad_norm())
    assert model.parameters['b1'].data.grad is model.parameters['b1'].grad


def test_predictions():
    """Test predictions read original and refined closing prices"""
    config = small_config(iterations=3)
    model = PriceModel([[1.0, 2.0, 3.0, 4.0], [5.0, 6.0, 7.0, 9.0]], config)
    PriceModelTrainer(model, config).train()

    predictions = model.predictions(['A', 'B'])

    assert [p.symbol for p in predictions] == ['A', 'B']
    assert [p.original for p in predictions] == [4.0, 9.0]
    assert predictions[1].refined == model.parameters['values'].data[-1, 1].item()


def test_loss_history_is_recorded():
    """Test the trainer records one loss and norm per iteration"""
    config = small_config(iterations=7, loss_threshold=0.0)
    model = PriceModel([[10.0, 20.0, 30.0, 40.0]], config)

    result = PriceModelTrainer(model, config).train()

    assert result.iterations == 7
    assert len(result.grad_norms) == 7
    assert all(math.isfinite(l) for l in result.losses)


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
