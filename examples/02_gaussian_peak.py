import numpy as np

from marquardt_fit import levenberg_marquardt, models

model = models.gaussian_with_offset()

rng = np.random.default_rng(1)
x = np.linspace(-5, 5, 80)
y = model.eval(x, [0.7, 0.2, 3.0, 1.1]) + rng.normal(0, 0.05, size=x.size)

# Seed from the model's guesser instead of the all-ones default.
p0 = model.initial_guess({"x": x, "y": y})
res = levenberg_marquardt(
    {"x": x, "y": y},
    model,
    initial_values=p0,
    gradient_difference=1e-4,
    central_difference=True,
    max_iterations=200,
    vectorized=True,
)
print(res.summary())
