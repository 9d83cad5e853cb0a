import numpy as np

from marquardt_fit import LMOptions, levenberg_marquardt, models

model = models.lorentzian_sum(2)
true = [-1.0, 2.0, 0.8, 1.5, 1.2, 0.6]
x = np.linspace(-4, 4, 120)
y = model(true)(x)

options = LMOptions(
    initial_values=[-0.8, 1.5, 1.0, 1.3, 1.0, 0.8],
    damping=1.5,
    gradient_difference=1e-2,
    max_iterations=300,
    error_tolerance=1e-8,
    vectorized=True,
)
res = levenberg_marquardt((x, y), model, options)
print(res.summary())
