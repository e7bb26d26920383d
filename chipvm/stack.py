"""CHIP-8 stack operations."""

import jax.numpy as jnp

from chipvm.constants import ADDRESS_MASK, STACK_SIZE
from chipvm.errors import StackOverflowError, StackUnderflowError
from chipvm.state import StackState


def push(stack: StackState, address: jnp.ndarray) -> StackState:
    """Push address onto stack."""
    depth = int(stack.pointer)
    if depth >= STACK_SIZE:
        raise StackOverflowError(f"Call depth exceeds {STACK_SIZE}")
    masked_address = jnp.asarray(address, dtype=jnp.uint16) & ADDRESS_MASK
    new_data = stack.data.at[depth].set(masked_address)
    return stack.replace(data=new_data, pointer=stack.pointer + 1)


def pop(stack: StackState) -> tuple[StackState, jnp.ndarray]:
    """Pop address from stack."""
    depth = int(stack.pointer)
    if depth <= 0:
        raise StackUnderflowError("Return with empty call stack")
    popped_address = stack.data[depth - 1]
    new_data = stack.data.at[depth - 1].set(0)
    return stack.replace(data=new_data, pointer=stack.pointer - 1), popped_address
