import math

from marquardt_fit import levenberg_marquardt


def exponential_decay(p):
    amplitude, rate, offset = p
    return lambda t: amplitude * math.exp(-rate * t) + offset


t = [0.25 * i for i in range(40)]
y = [exponential_decay([4.0, 0.8, 0.5])(ti) for ti in t]

# Keep the rate positive, and hold the offset at its known value by
# giving it a zero finite-difference step.
res = levenberg_marquardt(
    {"x": t, "y": y},
    exponential_decay,
    {
        "initialValues": [1.0, 2.0, 0.5],
        "minValues": [-10.0, 1e-3, -10.0],
        "maxValues": [10.0, 10.0, 10.0],
        "gradientDifference": [1e-4, 1e-4, 0.0],
        "damping": 1.5,
        "maxIterations": 300,
    },
)
print(res.to_dict())
print(res.status.value)
