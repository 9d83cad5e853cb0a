import numpy as np

from marquardt_fit import SampleSet, levenberg_marquardt, models

model = models.straight_line()

rng = np.random.default_rng(0)
x = np.linspace(0, 10, 20)
sigma = 0.3
y = model.eval(x, [2.0, -1.0]) + rng.normal(0, sigma, size=x.size)

data = SampleSet(x=x, y=y, label="noisy line")
res = levenberg_marquardt(
    data,
    model,
    initial_values=[-5.0, 5.0],
    weights=1 / sigma,
    error_tolerance=1e-3,
)

print(res["m"], res["b"])
print(res.summary(digits=4))
