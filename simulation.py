"""
Simulation Engine for AutoDrive.

Orchestrates the training loop:
  for each generation:
    1. Seed every car with a copy of the best network (all but car 0 mutated)
    2. Tick: traffic moves, then every live car senses → thinks → moves
    3. Score every live car; track the current best car
    4. When every car is damaged, promote the best network, optionally
       persist it, and start the next generation
"""

import time
import numpy as np

from road import Road
from car import Car
from controls import BrainPolicy, ConstantControls
from neural_network import random_network, mutate_network
from config import (
    POPULATION, MUTATION_RATE, MAX_GENERATIONS, MAX_TICKS_PER_GEN,
    AI_MAX_SPEED, SPAWN_Y, SAVE_MIN_FITNESS, SPEED_WEIGHT, OVERTAKE_WEIGHT,
    TRAFFIC_COUNT, TRAFFIC_SPACING, TRAFFIC_START_Y, TRAFFIC_JITTER,
    TRAFFIC_MIN_SPEED, TRAFFIC_REGEN_TICKS, TRAFFIC_REGEN_BATCH,
    TRAFFIC_PRUNE_Y, NETWORK_SHAPE,
)


class TrainingContext:
    """
    Run-wide counters carried across generation boundaries.
    """

    def __init__(self, generation: int = 1, best_ever_distance: float = 0.0,
                 best_ever_fitness: float = 0.0,
                 mutation_rate: float = MUTATION_RATE):
        self.generation         = generation
        self.best_ever_distance = best_ever_distance
        self.best_ever_fitness  = best_ever_fitness
        self.mutation_rate      = mutation_rate

    def advance(self, best_car) -> "TrainingContext":
        """Context for the next generation, folding in this one's best car."""
        return TrainingContext(
            generation         = self.generation + 1,
            best_ever_distance = max(self.best_ever_distance, best_car.distance),
            best_ever_fitness  = max(self.best_ever_fitness, best_car.fitness),
            mutation_rate      = self.mutation_rate,
        )

    def to_dict(self) -> dict:
        return {
            "generation":         self.generation,
            "best_ever_distance": float(self.best_ever_distance),
            "best_ever_fitness":  float(self.best_ever_fitness),
            "mutation_rate":      float(self.mutation_rate),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TrainingContext":
        return cls(
            generation         = int(data.get("generation", 1)),
            best_ever_distance = float(data.get("best_ever_distance", 0.0)),
            best_ever_fitness  = float(data.get("best_ever_fitness", 0.0)),
            mutation_rate      = float(data.get("mutation_rate", MUTATION_RATE)),
        )


class Simulation:
    """
    Main simulation controller (population + trainer).
    """

    def __init__(
        self,
        population:      int   = POPULATION,
        mutation_rate:   float = None,
        max_speed:       float = None,    # override for every AI car
        max_generations: int   = MAX_GENERATIONS,
        max_ticks:       int   = MAX_TICKS_PER_GEN,
        road:            Road  = None,
        store                  = None,    # anything with load_network/save_network
        context: TrainingContext = None,
        seed:            int   = None,
        on_tick_callback       = None,    # called every tick (for live viz)
        on_gen_callback        = None,    # called at each generation boundary
    ):
        assert population >= 1, "population must be positive"
        self.population      = population
        self.max_speed       = max_speed if max_speed is not None else AI_MAX_SPEED
        self.max_generations = max_generations
        self.max_ticks       = max_ticks
        self.road            = road if road is not None else Road()
        self.store           = store
        self.rng             = np.random.default_rng(seed)
        self.on_tick_callback = on_tick_callback
        self.on_gen_callback  = on_gen_callback

        if context is None:
            stats = self.store.load_stats() if hasattr(self.store, "load_stats") else {}
            context = TrainingContext.from_dict(stats)
        if mutation_rate is not None:
            context.mutation_rate = mutation_rate
        assert 0.0 <= context.mutation_rate <= 1.0, "mutation rate must be in [0, 1]"
        self.context = context

        self.seed_network = self.store.load_network() if self.store is not None else None
        self.policy = BrainPolicy()
        self.stats  = []          # list of dicts, one per finished generation

        self.cars    = []
        self.traffic = []
        self.best_car = None
        self.tick    = 0
        self.start_generation()

    @property
    def generation(self) -> int:
        return self.context.generation

    @property
    def mutation_rate(self) -> float:
        return self.context.mutation_rate

    # ──────────────────────────────────────────────────────────────────────────
    # Generation setup
    # ──────────────────────────────────────────────────────────────────────────

    def start_generation(self):
        """(Re)build cars and traffic from the current seed network."""
        networks = self._breed(self.seed_network)
        self.cars = [
            Car(self.road.lane_center(int(self.rng.integers(0, self.road.lane_count))),
                SPAWN_Y, max_speed=self.max_speed,
                controller=self.policy, brain=net)
            for net in networks
        ]
        self.traffic  = self._generate_traffic()
        self.best_car = self.cars[0]
        self.tick     = 0
        self._regen_timer = 0

    def restart(self):
        """Throw away this generation's progress; same seed, same counter."""
        self.start_generation()

    def _breed(self, seed_network) -> list:
        """
        Cold start: independent random networks.
        Warm start: slot 0 keeps an exact copy of the seed, every other
        slot gets its own mutated copy.
        """
        if seed_network is None:
            return [random_network(NETWORK_SHAPE, self.rng)
                    for _ in range(self.population)]
        networks = [seed_network.copy()]
        for _ in range(self.population - 1):
            networks.append(mutate_network(seed_network, self.mutation_rate, self.rng))
        return networks

    def set_max_speed(self, max_speed: float):
        """Apply a max speed override to every AI car, now and later."""
        self.max_speed = max_speed
        for car in self.cars:
            car.set_max_speed(max_speed)

    # ──────────────────────────────────────────────────────────────────────────
    # Traffic
    # ──────────────────────────────────────────────────────────────────────────

    def _traffic_car(self, y: float) -> Car:
        lane = int(self.rng.integers(0, self.road.lane_count))
        speed = TRAFFIC_MIN_SPEED + float(self.rng.random())
        return Car(self.road.lane_center(lane), y, max_speed=speed,
                   controller=ConstantControls(), with_sensor=False)

    def _generate_traffic(self) -> list:
        return [
            self._traffic_car(TRAFFIC_START_Y - i * TRAFFIC_SPACING
                              - float(self.rng.random()) * TRAFFIC_JITTER)
            for i in range(TRAFFIC_COUNT)
        ]

    def add_more_traffic(self):
        """Add a batch ahead of the furthest car, drop cars far behind."""
        furthest = min((t.y for t in self.traffic), default=TRAFFIC_START_Y)
        for i in range(TRAFFIC_REGEN_BATCH):
            y = (furthest - TRAFFIC_SPACING - i * TRAFFIC_SPACING
                 - float(self.rng.random()) * TRAFFIC_JITTER)
            self.traffic.append(self._traffic_car(y))
        self.traffic = [t for t in self.traffic if t.y < TRAFFIC_PRUNE_Y]

    # ──────────────────────────────────────────────────────────────────────────
    # One tick
    # ──────────────────────────────────────────────────────────────────────────

    def fitness_of(self, car: Car) -> float:
        return (car.distance
                + SPEED_WEIGHT * car.speed
                + OVERTAKE_WEIGHT * car.overtaken(self.traffic))

    def step(self) -> int:
        """Advance every live car by one tick. Returns the live count."""
        self.tick += 1
        self._regen_timer += 1
        if self._regen_timer > TRAFFIC_REGEN_TICKS:
            self.add_more_traffic()
            self._regen_timer = 0

        borders = self.road.borders
        for t in self.traffic:
            t.update(borders, ())

        for car in self.cars:
            if car.damaged:
                continue
            car.update(borders, self.traffic)
            if not car.damaged:
                car.fitness = self.fitness_of(car)

        best = self.cars[0]
        for car in self.cars[1:]:
            if car.fitness > best.fitness:
                best = car
        self.best_car = best

        if self.on_tick_callback:
            self.on_tick_callback(self.tick, self)
        return self.alive_count

    @property
    def alive_count(self) -> int:
        return sum(1 for c in self.cars if not c.damaged)

    @property
    def all_damaged(self) -> bool:
        return self.alive_count == 0

    def tick_stats(self) -> dict:
        best = self.best_car
        return {
            "generation":    self.generation,
            "tick":          self.tick,
            "alive":         self.alive_count,
            "best_distance": best.distance,
            "best_fitness":  best.fitness,
            "cars_passed":   best.overtaken(self.traffic),
        }

    # ──────────────────────────────────────────────────────────────────────────
    # Generation boundary
    # ──────────────────────────────────────────────────────────────────────────

    def next_generation(self) -> dict:
        """
        Close the current generation: persist the best brain if it made
        decent progress, fold it into the context, and reseed every car
        from it. May be called early to force an advance.
        """
        best = self.best_car
        stats = self._compute_stats()

        saved = False
        if self.store is not None and best.fitness > SAVE_MIN_FITNESS:
            self.store.save_network(best.brain, {
                "fitness":    round(float(best.fitness), 2),
                "distance":   round(float(best.distance), 2),
                "generation": self.generation,
            })
            saved = True
        stats["saved"] = saved

        self.context = self.context.advance(best)
        if hasattr(self.store, "save_stats"):
            self.store.save_stats(self.context.to_dict())

        self.seed_network = best.brain.copy()
        self.stats.append(stats)
        self.start_generation()
        return stats

    def run_generation(self) -> dict:
        """Tick until every car is damaged (or the tick cap), then advance."""
        t0 = time.time()
        while not self.all_damaged and self.tick < self.max_ticks:
            self.step()
        stats = self.next_generation()
        stats["elapsed_s"] = round(time.time() - t0, 3)
        return stats

    def run(self):
        """Run max_generations generations headlessly."""
        for gen_idx in range(self.max_generations):
            finished_cars = self.cars
            finished_traffic = self.traffic
            stats = self.run_generation()
            self._print_stats(stats)
            if self.on_gen_callback:
                self.on_gen_callback(gen_idx, stats, self,
                                     finished_cars, finished_traffic)
        print("\n=== Training complete ===")

    # ──────────────────────────────────────────────────────────────────────────
    # Stats
    # ──────────────────────────────────────────────────────────────────────────

    def _compute_stats(self) -> dict:
        best = self.best_car
        fitness = [c.fitness for c in self.cars]
        return {
            "generation":    self.generation,
            "population":    len(self.cars),
            "alive":         self.alive_count,
            "ticks":         self.tick,
            "best_index":    self.cars.index(best),
            "best_fitness":  round(float(best.fitness), 2),
            "mean_fitness":  round(float(np.mean(fitness)), 2),
            "best_distance": round(float(best.distance), 2),
            "cars_passed":   best.overtaken(self.traffic),
            "mutation_rate": self.mutation_rate,
        }

    def _print_stats(self, stats: dict):
        print(
            f"Gen {stats['generation']:>5}  |  "
            f"alive {stats['alive']:>3}/{stats['population']:<3}  |  "
            f"best fitness {stats['best_fitness']:>9.1f}  |  "
            f"distance {stats['best_distance']:>8.1f}  |  "
            f"passed {stats['cars_passed']:>3}  |  "
            f"ticks {stats['ticks']:>5}  |  "
            f"{'saved' if stats.get('saved') else '     '}  |  "
            f"{stats.get('elapsed_s', 0.0):.2f}s"
        )
