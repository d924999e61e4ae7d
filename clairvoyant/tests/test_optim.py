"""
Tests for the clipped heavy-ball optimizer.
"""

import torch
import pytest

from clairvoyant.optim import ClippedHeavyBall


LR = 0.05
MOMENTUM = 0.3


def make_params(w_grad, b_grad, v_grad):
    w = torch.tensor([[1.0, 0.0], [0.5, -0.5]], dtype=torch.float64)
    b = torch.tensor([[0.1], [0.2]], dtype=torch.float64)
    v = torch.tensor([[3.0], [3.0]], dtype=torch.float64)
    w.grad = torch.tensor(w_grad, dtype=torch.float64)
    b.grad = torch.tensor(b_grad, dtype=torch.float64)
    v.grad = torch.tensor(v_grad, dtype=torch.float64)
    return w, b, v


def make_optimizer(w, b, v):
    lower = torch.ones(2, 2, dtype=torch.bool).tril()
    last = torch.tensor([[False], [True]])
    return ClippedHeavyBall(
        [
            {'params': [w], 'mask': lower, 'clip': True},
            {'params': [b], 'clip': True},
            {'params': [v], 'mask': last, 'clip': False},
        ],
        lr=LR,
        momentum=MOMENTUM,
        max_norm=1.0,
    )


def snapshot(*tensors):
    return [t.clone() for t in tensors]


def test_norm_is_restricted():
    """Test the norm covers the lower triangle of w1 and b1 only"""
    w, b, v = make_params([[0.3, 100.0], [0.0, 0.0]], [[0.4], [0.0]], [[50.0], [50.0]])
    optimizer = make_optimizer(w, b, v)

    assert optimizer.grad_norm() == pytest.approx(0.5)


def test_small_norm_update_is_unclipped():
    """Test norm <= 1 gives the plain heavy-ball update"""
    w, b, v = make_params([[0.3, 9.0], [0.0, 0.0]], [[0.4], [0.0]], [[2.0], [2.0]])
    optimizer = make_optimizer(w, b, v)
    w0, b0, v0 = snapshot(w, b, v)

    norm = optimizer.grad_norm()
    optimizer.step()

    assert norm == pytest.approx(0.5)
    assert torch.allclose(w - w0, torch.tensor([[-LR * 0.3, 0.0], [0.0, 0.0]], dtype=torch.float64))
    assert torch.allclose(b - b0, torch.tensor([[-LR * 0.4], [0.0]], dtype=torch.float64))
    assert torch.allclose(v - v0, torch.tensor([[0.0], [-LR * 2.0]], dtype=torch.float64))


def test_large_norm_update_is_scaled():
    """Test norm > 1 divides w1/b1 updates by the norm but not values"""
    w_grad = [[3.0, 7.0], [0.0, 0.0]]
    b_grad = [[0.0], [4.0]]
    v_grad = [[1.0], [2.0]]
    w, b, v = make_params(w_grad, b_grad, v_grad)
    optimizer = make_optimizer(w, b, v)
    w0, b0, v0 = snapshot(w, b, v)

    norm = optimizer.grad_norm()
    optimizer.step()

    assert norm == pytest.approx(5.0)
    unclipped_w = -LR * torch.tensor([[3.0, 0.0], [0.0, 0.0]], dtype=torch.float64)
    unclipped_b = -LR * torch.tensor(b_grad, dtype=torch.float64)
    assert torch.allclose(w - w0, unclipped_w / norm)
    assert torch.allclose(b - b0, unclipped_b / norm)
    assert torch.allclose(v - v0, torch.tensor([[0.0], [-LR * 2.0]], dtype=torch.float64))

    # Direction preserved, magnitude divided by the norm
    step = torch.cat([(w - w0).flatten(), (b - b0).flatten()])
    unclipped = torch.cat([unclipped_w.flatten(), unclipped_b.flatten()])
    assert torch.allclose(step * norm, unclipped)
    assert step.norm().item() == pytest.approx(unclipped.norm().item() / norm)


def test_momentum_accumulates():
    """Test the second step adds the decayed velocity"""
    w, b, v = make_params([[0.3, 0.0], [0.0, 0.0]], [[0.4], [0.0]], [[0.0], [1.0]])
    optimizer = make_optimizer(w, b, v)
    b0 = b.data.clone()

    optimizer.step()
    first = b - b0
    optimizer.step()
    second = b - b0 - first

    assert torch.allclose(second, MOMENTUM * first - LR * b.grad)


def test_zero_grad():
    """Test zero_grad clears every group"""
    w, b, v = make_params([[1.0, 1.0], [1.0, 1.0]], [[1.0], [1.0]], [[1.0], [1.0]])
    optimizer = make_optimizer(w, b, v)

    optimizer.zero_grad()

    assert optimizer.grad_norm() == 0.0
    assert v.grad is None or torch.count_nonzero(v.grad) == 0


def test_closure_fills_gradients():
    """Test step() evaluates the closure first and returns its loss"""
    w, b, v = make_params([[0.0, 0.0], [0.0, 0.0]], [[0.0], [0.0]], [[0.0], [0.0]])
    optimizer = make_optimizer(w, b, v)
    b0 = b.clone()

    def closure():
        b.grad = torch.tensor([[0.4], [0.0]], dtype=torch.float64)
        return 0.75

    loss = optimizer.step(closure)

    assert loss == 0.75
    assert torch.allclose(b - b0, torch.tensor([[-LR * 0.4], [0.0]], dtype=torch.float64))


def test_group_defaults():
    """Test groups inherit hyperparameters and default to unmasked, clipped"""
    w, b, v = make_params([[0.0, 0.0], [0.0, 0.0]], [[0.0], [0.0]], [[0.0], [0.0]])
    optimizer = make_optimizer(w, b, v)

    assert isinstance(optimizer, torch.optim.Optimizer)
    assert optimizer.param_groups[1]['mask'] is None
    assert optimizer.param_groups[1]['clip'] is True
    assert all(group['lr'] == LR for group in optimizer.param_groups)
    assert all(group['momentum'] == MOMENTUM for group in optimizer.param_groups)


def test_invalid_hyperparameters():
    """Test invalid hyperparameters are rejected"""
    with pytest.raises(ValueError):
        ClippedHeavyBall([], lr=-1.0)
    with pytest.raises(ValueError):
        ClippedHeavyBall([], momentum=1.0)
    with pytest.raises(ValueError):
        ClippedHeavyBall([], max_norm=0.0)


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
