"""
AutoDrive – Main Entry Point
============================

Usage examples:
  python main.py                          # resume from brains.json if present
  python main.py --fresh                  # ignore any saved brain
  python main.py --gens 100 --pop 50      # custom parameters
  python main.py --mutation 0.1           # gentler mutation
  python main.py --max_speed 3            # faster AI cars
  python main.py --list                   # show saved brains
  python main.py --load brain_1700000000  # seed from a saved brain
  python main.py --discard                # drop the seed brain, reset stats
"""

import argparse
import os

from simulation import Simulation
from storage    import BrainStore
from visualizer import (ensure_dirs, save_road_snapshot,
                        save_evolution_chart, save_network_diagram,
                        append_csv)
from config import (SAVE_DIR, SNAPSHOT_INTERVAL, SAVE_NETWORK_DIAGRAM,
                    POPULATION, MAX_GENERATIONS, MAX_TICKS_PER_GEN,
                    BRAIN_STORE_PATH)


# ──────────────────────────────────────────────────────────────────────────────
# CLI
# ──────────────────────────────────────────────────────────────────────────────

def parse_args(argv=None):
    p = argparse.ArgumentParser(description="AutoDrive – self-driving cars trained by evolution")
    p.add_argument("--gens",       type=int,   default=MAX_GENERATIONS,
                   help="Number of generations to run")
    p.add_argument("--pop",        type=int,   default=POPULATION,
                   help="Population size")
    p.add_argument("--ticks",      type=int,   default=MAX_TICKS_PER_GEN,
                   help="Tick cap per generation")
    p.add_argument("--mutation",   type=float, default=None,
                   help="Mutation rate in [0, 1] (default: saved value or config)")
    p.add_argument("--max_speed",  type=float, default=None,
                   help="Max speed override for every AI car")
    p.add_argument("--seed",       type=int,   default=None,
                   help="Random seed for reproducibility")
    p.add_argument("--outdir",     default=SAVE_DIR,
                   help="Output directory")
    p.add_argument("--store",      default=BRAIN_STORE_PATH,
                   help="Brain store JSON file")
    p.add_argument("--fresh",      action="store_true",
                   help="Start from random brains, don't read the store")
    p.add_argument("--snapshot_interval", type=int, default=SNAPSHOT_INTERVAL,
                   help="Save a road snapshot every N generations")
    p.add_argument("--list",       action="store_true",
                   help="List saved brains and exit")
    p.add_argument("--load",       default=None, metavar="BRAIN_ID",
                   help="Promote a saved brain to seed before training")
    p.add_argument("--delete",     default=None, metavar="BRAIN_ID",
                   help="Delete a saved brain and exit")
    p.add_argument("--discard",    action="store_true",
                   help="Drop the seed brain and reset stats, then exit")
    p.add_argument("--reset",      action="store_true",
                   help="Delete the whole brain store, then exit")
    return p.parse_args(argv)


def validate_settings(population: int, mutation_rate, max_speed) -> tuple:
    """
    Host-side checks before anything reaches the simulation:
    population and max speed must be positive, mutation rate is clamped
    into [0, 1].
    """
    if population is None or int(population) < 1:
        raise ValueError(f"population must be a positive integer, got {population!r}")
    if mutation_rate is not None:
        mutation_rate = min(1.0, max(0.0, float(mutation_rate)))
    if max_speed is not None and float(max_speed) <= 0:
        raise ValueError(f"max speed must be positive, got {max_speed!r}")
    return int(population), mutation_rate, max_speed


# ──────────────────────────────────────────────────────────────────────────────
# Callbacks
# ──────────────────────────────────────────────────────────────────────────────

class TrainingCallbacks:
    """Bundles the per-generation output hooks used by the simulation."""

    def __init__(self, outdir: str, snapshot_interval: int, all_stats: list):
        self.outdir            = outdir
        self.snapshot_interval = max(1, snapshot_interval)
        self.all_stats         = all_stats

    def on_generation(self, gen_idx, stats, sim, cars, traffic):
        self.all_stats.append(stats)
        append_csv(stats, self.outdir)

        if gen_idx % self.snapshot_interval == 0:
            best = cars[stats["best_index"]]
            path = save_road_snapshot(sim.road, cars, traffic, best,
                                      stats["generation"], self.outdir)
            print(f"  → Snapshot: {path}")

            if SAVE_NETWORK_DIAGRAM:
                npath = save_network_diagram(best.brain, stats["generation"],
                                             "best_car", self.outdir)
                if npath:
                    print(f"  → Network diagram: {npath}")

        if gen_idx % 25 == 0 and gen_idx > 0:
            save_evolution_chart(self.all_stats, self.outdir)


# ──────────────────────────────────────────────────────────────────────────────
# Store maintenance
# ──────────────────────────────────────────────────────────────────────────────

def _print_brains(store: BrainStore):
    brains = store.list_brains()
    if not brains:
        print("No saved brains")
        return
    for brain_id, rec in brains:
        print(f"  {brain_id:<22}  gen {rec.get('generation', '?'):>4}  "
              f"fitness {float(rec.get('fitness', 0)):>9.1f}  "
              f"distance {float(rec.get('distance', 0)):>8.1f}  "
              f"{rec.get('timestamp', '')}")


def _maintain_store(args, store: BrainStore) -> bool:
    """Handle the store-only flags. Returns True if the program should exit."""
    if args.reset:
        store.reset()
        print(f"Brain store {store.path} cleared")
        return True
    if args.discard:
        store.discard()
        print("Seed brain discarded, stats reset")
        return True
    if args.delete:
        if not store.delete_brain(args.delete):
            raise SystemExit(f"error: no saved brain {args.delete}")
        print(f"Deleted {args.delete}")
        return True
    if args.list:
        _print_brains(store)
        return True
    if args.load:
        try:
            rec = store.load_brain(args.load)
        except KeyError:
            raise SystemExit(f"error: no saved brain {args.load}")
        print(f"Seeding from {args.load} (generation {rec.get('generation', '?')})")
    return False


# ──────────────────────────────────────────────────────────────────────────────
# Main
# ──────────────────────────────────────────────────────────────────────────────

def main(argv=None):
    args = parse_args(argv)
    try:
        population, mutation_rate, max_speed = validate_settings(
            args.pop, args.mutation, args.max_speed)
    except ValueError as e:
        raise SystemExit(f"error: {e}")

    store = BrainStore(args.store)
    if _maintain_store(args, store):
        return

    ensure_dirs(args.outdir)
    all_stats = []
    cb = TrainingCallbacks(args.outdir, args.snapshot_interval, all_stats)

    sim = Simulation(
        population      = population,
        mutation_rate   = mutation_rate,
        max_speed       = max_speed,
        max_generations = args.gens,
        max_ticks       = args.ticks,
        store           = None if args.fresh else store,
        seed            = args.seed,
        on_gen_callback = cb.on_generation,
    )
    if args.fresh:
        # keep persisting results even when not resuming from them
        sim.store = store

    print("=" * 60)
    print("  AutoDrive – self-driving cars trained by evolution")
    print("=" * 60)
    print(f"  Start gen  : {sim.generation}")
    print(f"  Seed brain : {'saved' if sim.seed_network is not None else 'random'}")
    print(f"  Population : {population}")
    print(f"  Generations: {args.gens}")
    print(f"  Tick cap   : {args.ticks}")
    print(f"  Mutation   : {sim.mutation_rate}")
    print(f"  Max speed  : {sim.max_speed}")
    print(f"  Brain store: {args.store}")
    print(f"  Output dir : {args.outdir}")
    print("=" * 60)

    sim.run()

    print("\nSaving final training chart …")
    chart_path = save_evolution_chart(all_stats, args.outdir, "training_final.png")
    print(f"  → {chart_path}")
    print(f"  Best-ever distance: {sim.context.best_ever_distance:.1f}")
    print(f"  Best-ever fitness : {sim.context.best_ever_fitness:.1f}")
    print("\nDone! All outputs saved to:", os.path.abspath(args.outdir))


if __name__ == "__main__":
    main()
