"""
Computation graph with explicit forward and reverse passes.

A cost expression is a tree of nodes: leaves wrap parameter tensors and
``Apply`` nodes apply an operator to other nodes. ``Graph`` orders the nodes
once (inputs before consumers, shared nodes visited once) and then runs:

    forward()        evaluate every operator, return the output tensor
    backward(seed)   seed the output gradient (default 1) and accumulate
                     input gradients in reverse order

Leaf gradients accumulate into the parameter tensors themselves, so callers
must zero their ParameterSet before each forward+backward evaluation.
"""

import torch
from typing import List, Optional, Tuple

from .tensor import Tensor


class Node:
    """Base class of graph nodes."""

    inputs: Tuple['Node', ...] = ()
    shape: Tuple[int, ...] = ()

    @property
    def output(self) -> Optional[Tensor]:
        raise NotImplementedError


class Leaf(Node):
    """Node wrapping a persistent (parameter) tensor."""

    def __init__(self, tensor: Tensor):
        self.tensor = tensor
        self.shape = tensor.shape
        self.inputs = ()

    @property
    def output(self) -> Tensor:
        return self.tensor

    def __repr__(self) -> str:
        return f"Leaf({self.tensor.name})"


class Apply(Node):
    """
    Node applying an operator to input nodes.

    The output shape is inferred (and input shapes validated) at construction,
    before any evaluation happens.
    """

    def __init__(self, op, *inputs: Node):
        self.op = op
        self.inputs = tuple(inputs)
        self.shape = op.infer_shape(*[node.shape for node in self.inputs])
        self._output: Optional[Tensor] = None

    @property
    def output(self) -> Optional[Tensor]:
        return self._output

    def evaluate(self) -> Tensor:
        data = self.op.forward(*[node.output.data for node in self.inputs])
        self._output = Tensor(self.op.name, self.shape, data=data)
        return self._output

    def propagate(self) -> None:
        output = self._output
        grads = self.op.backward(
            output.grad,
            [node.output.data for node in self.inputs],
            output.data,
        )
        for node, grad in zip(self.inputs, grads):
            if grad is not None:
                node.output.grad.add_(grad)

    def __repr__(self) -> str:
        return f"{self.op.name}({', '.join(repr(node) for node in self.inputs)})"


class Graph:
    """
    Evaluates a cost expression.

    Args:
        output: Root node of the expression
    """

    def __init__(self, output: Node):
        self.output = output
        self.nodes = self._topological_order(output)

    @staticmethod
    def _topological_order(root: Node) -> List[Node]:
        order: List[Node] = []
        seen = set()

        def visit(node: Node) -> None:
            if id(node) in seen:
                return
            seen.add(id(node))
            for child in node.inputs:
                visit(child)
            order.append(node)

        visit(root)
        return order

    def forward(self) -> Tensor:
        """Evaluate every operator in construction order and return the output."""
        for node in self.nodes:
            if isinstance(node, Apply):
                node.evaluate()
        return self.output.output

    def backward(self, seed: Optional[torch.Tensor] = None) -> None:
        """
        Propagate gradients from the output back to every input.

        Args:
            seed: Upstream gradient of the output (defaults to ones)
        """
        output = self.output.output
        if output is None:
            raise RuntimeError("forward() must run before backward()")

        if seed is None:
            output.grad.add_(torch.ones_like(output.grad))
        else:
            output.grad.add_(torch.as_tensor(seed, dtype=output.dtype))

        for node in reversed(self.nodes):
            if isinstance(node, Apply):
                node.propagate()

    def evaluate(self, forward_only: bool = False, seed: Optional[torch.Tensor] = None) -> Tensor:
        """
        Run the forward pass and, unless ``forward_only``, the reverse pass.

        Returns:
            The output tensor
        """
        output = self.forward()
        if not forward_only:
            self.backward(seed)
        return output
