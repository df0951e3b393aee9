"""Quick start example: resolve a function adaptively and reuse the result."""

import numpy as np

from pychebtech import Chebtech, compose, construct


def f(x):
    """An oscillatory function: cos(10*pi*x)."""
    return np.cos(10 * np.pi * x)


# Build adaptively, printing each refinement
cheb = construct(f, verbose=True)
print(cheb)

# Evaluate at a test point
point = 0.123
exact = f(point)
approx = cheb(point)

print(f"\nExact:  {exact:.14f}")
print(f"Approx: {approx:.14f}")
print(f"Error:  {abs(approx - exact):.2e}")

# A function with a removable singularity at 0
with np.errstate(invalid="ignore", divide="ignore"):
    sinc = construct(lambda x: np.sin(5 * x) / x)
print(f"\nsinc degree {sinc.degree}, sinc(0) = {sinc(0.0):.14f} (exact 5)")

# Compose without re-sampling the operand
square = compose(np.square, cheb)
print(f"cos^2 degree {square.degree}, value {square(point):.14f}")

# Non-adaptive construction from samples on the Chebyshev nodes
x = Chebtech.nodes(20)
g = Chebtech.from_values(np.exp(x))
print(f"from_values: exp(0.5) error {abs(g(0.5) - np.exp(0.5)):.2e}")
