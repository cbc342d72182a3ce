"""
Single Trial and Single Cell Example
====================================

Simulates one 2x2 dataset, evaluates the three linear models on it, and then
estimates power for the same design by repeating the trial 1000 times.
"""

import factorpower

print("=" * 60)
print("SINGLE TRIAL")
print("=" * 60)

# Condition means ordered (a1b1, a2b1, a1b2, a2b2)
model = factorpower.FactorialPower(means=(2.5, 2.75, 3, 4))
model.set_seed(2137)

data = model.simulate_dataset(sample_size=600, sd=1.5)
print(data.head(8))
print(data.groupby(["iv1", "iv2"], observed=True)["response"].mean())

trial = model.evaluate(sample_size=600, sd=1.5)
print(f"\niv1 main effect:   p = {trial.p_1:.3g}, significant = {trial.sig_1}, f = {trial.es_1:.3f}")
print(f"iv2 main effect:   p = {trial.p_2:.3g}, significant = {trial.sig_2}, f = {trial.es_2:.3f}")
print(f"iv1:iv2 interaction: p = {trial.p_3:.3g}, significant = {trial.sig_3}, partial f = {trial.es_3:.3f}")

print("\n" + "=" * 60)
print("POWER FOR ONE CELL")
print("=" * 60)

model.find_power(sample_size=600, sd=1.5)
