"""
Quick demo – trains 30 generations from scratch with a fixed seed
and saves snapshots + charts without needing a display.
Does not touch the default brain store.
"""
import os, sys
sys.path.insert(0, os.path.dirname(__file__))

from simulation import Simulation
from storage import BrainStore
from visualizer import (ensure_dirs, save_road_snapshot,
                        save_evolution_chart, save_network_diagram, append_csv)

OUT = "output/demo"
ensure_dirs(OUT)

all_stats = []

def on_gen(gen_idx, stats, sim, cars, traffic):
    all_stats.append(stats)
    append_csv(stats, OUT)
    if gen_idx % 5 == 0:
        best = cars[stats["best_index"]]
        save_road_snapshot(sim.road, cars, traffic, best, stats["generation"], OUT)
        save_network_diagram(best.brain, stats["generation"], "best", OUT)

store = BrainStore(os.path.join(OUT, "demo_brains.json"))
store.reset()

sim = Simulation(
    population      = 30,
    mutation_rate   = 0.2,
    max_generations = 30,
    max_ticks       = 1500,
    store           = store,
    seed            = 42,
    on_gen_callback = on_gen,
)
sim.run()

save_evolution_chart(all_stats, OUT, "demo_chart.png")
print("\nAll outputs in:", OUT)
