"""
Clipped Heavy-Ball - momentum gradient descent with restricted norm clipping.

Update rule per parameter:

    velocity ← α · velocity − η · grad · scale
    param    ← param + velocity

where ``scale`` is 1 / ‖g‖ when the gradient norm ‖g‖ exceeds ``max_norm``
and 1 otherwise. Only groups flagged ``clip`` contribute to ‖g‖ and receive
the scale; the remaining groups always take the unscaled step.

Groups may carry a boolean ``mask``: gradients outside the mask are ignored,
so masked-out entries never move and never enter the norm.

Gradients are not produced by autograd. The caller writes them into
``p.grad`` (usually from the closure) before each step.
"""

import torch
from torch.optim import Optimizer


class ClippedHeavyBall(Optimizer):
    """
    Heavy-ball optimizer with masked parameter groups.

    Args:
        params: Tensors or dicts with 'params', optional 'mask' (bool tensor
            broadcastable to each param) and optional 'clip' (default True)
        lr: Step size η (default: 0.05)
        momentum: Velocity decay α (default: 0.3)
        max_norm: Clipping threshold (default: 1.0)
    """

    def __init__(
        self,
        params,
        lr: float = 0.05,
        momentum: float = 0.3,
        max_norm: float = 1.0,
    ):
        if lr < 0.0:
            raise ValueError(f"Invalid learning rate: {lr}")
        if not 0.0 <= momentum < 1.0:
            raise ValueError(f"Invalid momentum: {momentum}")
        if max_norm <= 0.0:
            raise ValueError(f"Invalid max_norm: {max_norm}")

        defaults = dict(
            lr=lr,
            momentum=momentum,
            max_norm=max_norm,
            mask=None,
            clip=True,
        )
        super().__init__(params, defaults)

    @staticmethod
    def _masked(grad: torch.Tensor, mask) -> torch.Tensor:
        if mask is None:
            return grad
        return torch.where(mask, grad, torch.zeros_like(grad))

    @torch.no_grad()
    def grad_norm(self) -> float:
        """L2 norm of the masked gradients of the clipped groups."""
        total = 0.0
        for group in self.param_groups:
            if not group['clip']:
                continue
            for p in group['params']:
                if p.grad is None:
                    continue
                grad = self._masked(p.grad, group['mask'])
                total += float((grad.abs() ** 2).sum())
        return total ** 0.5

    @torch.no_grad()
    def step(self, closure=None):
        """
        Perform a single optimization step.

        Args:
            closure: A closure that reevaluates the model, fills ``p.grad``
                and returns the loss

        Returns:
            loss (optional)
        """
        loss = None
        if closure is not None:
            with torch.enable_grad():
                loss = closure()

        norm = self.grad_norm()
        scaling = 1.0 / norm if norm > self.defaults['max_norm'] else 1.0

        for group in self.param_groups:
            lr = group['lr']
            momentum = group['momentum']
            scale = scaling if group['clip'] else 1.0

            for p in group['params']:
                if p.grad is None:
                    continue

                grad = self._masked(p.grad, group['mask'])

                state = self.state[p]
                if len(state) == 0:
                    state['velocity'] = torch.zeros_like(p.data)

                velocity = state['velocity']
                velocity.mul_(momentum).sub_(grad * (lr * scale))
                p.data.add_(velocity)

        return loss
