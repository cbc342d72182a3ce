"""
Power Grid Example
==================

Sweeps sample sizes 100..980 (step 40) and standard deviations 1, 1.5, 2,
running 1000 simulated trials per cell, then plots power curves and effect
sizes with 95% intervals.
"""

import factorpower
from factorpower.progress import PrintReporter

model = factorpower.FactorialPower(means=(2.5, 2.75, 3, 4))
model.set_sample_sizes(from_size=100, to_size=980, by=40)
model.set_sds([1, 1.5, 2])
model.set_simulations(1000)
model.set_parallel(True)

results = model.run_grid(progress_callback=PrintReporter(), plot=True)

summary = results["results"]["summary"]
print(f"\n{len(summary)} summary rows")

# First sample size reaching 80% power for the interaction, per sd
interaction = summary[(summary["effect"] == "iv1:iv2") & (summary["power"] >= 80)]
print(interaction.groupby("sd")["n"].min())

results["results"]["trials"].to_csv("factorial_power_trials.csv", index=False)
summary.to_csv("factorial_power_summary.csv", index=False)
