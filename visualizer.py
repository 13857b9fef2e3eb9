"""
Visualizer for AutoDrive.

Produces:
  1. Road snapshots   – cars, traffic and the best car's sensor rays
  2. Evolution chart  – best / mean fitness, distance, cars passed
  3. Network diagrams – weights of the best car's brain
  4. CSV log          – per-generation stats
"""

import os
import csv
import matplotlib
matplotlib.use("Agg")          # non-interactive backend (no display needed)
import matplotlib.pyplot as plt
import matplotlib.patches as mpatches

from config import SAVE_DIR, LOG_CSV, OUTPUT_LABELS, RAY_COUNT


# ──────────────────────────────────────────────────────────────────────────────
# Directory setup
# ──────────────────────────────────────────────────────────────────────────────

def ensure_dirs(base: str = SAVE_DIR):
    for sub in ("snapshots", "charts", "neural"):
        os.makedirs(os.path.join(base, sub), exist_ok=True)


# ──────────────────────────────────────────────────────────────────────────────
# Road snapshot
# ──────────────────────────────────────────────────────────────────────────────

def save_road_snapshot(road, cars: list, traffic: list, best_car,
                       generation: int, base: str = SAVE_DIR,
                       view_height: float = 700):
    """
    Draw the stretch of road around the best car.
    Live AI cars are faint blue, damaged ones grey, traffic red; the best
    car is drawn solid with its sensor rays (yellow forward, cyan back).
    """
    fig, ax = plt.subplots(figsize=(3, 8), dpi=100)
    top = best_car.y - view_height * 0.7
    ax.set_xlim(road.left - 20, road.right + 20)
    ax.set_ylim(top + view_height, top)          # y grows downwards
    ax.set_aspect("equal")
    ax.set_facecolor("#777777")
    fig.patch.set_facecolor("#111111")
    alive = sum(1 for c in cars if not c.damaged)
    ax.set_title(f"Generation {generation}  ({alive}/{len(cars)} alive)",
                 color="white", fontsize=9)
    ax.tick_params(colors="white", labelsize=6)

    for x in road.lane_lines():
        ax.axvline(x, color="white", linestyle=(0, (6, 6)), linewidth=1)
    for (x0, y0), (x1, y1) in road.borders:
        ax.plot([x0, x1], [y0, y1], color="white", linewidth=3)

    for t in traffic:
        ax.add_patch(mpatches.Polygon(t.polygon, closed=True, color="red"))

    for c in cars:
        if c is best_car:
            continue
        color = "grey" if c.damaged else "blue"
        ax.add_patch(mpatches.Polygon(c.polygon, closed=True,
                                      color=color, alpha=0.2))

    _draw_sensor(ax, best_car)
    ax.add_patch(mpatches.Polygon(best_car.polygon, closed=True,
                                  color="grey" if best_car.damaged else "blue"))

    path = os.path.join(base, "snapshots", f"gen_{generation:06d}.png")
    plt.savefig(path, dpi=100, bbox_inches="tight", facecolor=fig.get_facecolor())
    plt.close(fig)
    return path


def _draw_sensor(ax, car):
    sensor = car.sensor
    if sensor is None:
        return
    for i, ((sx, sy), (ex, ey)) in enumerate(sensor.rays):
        reading = sensor.readings[i] if i < len(sensor.readings) else None
        hx, hy = (ex, ey) if reading is None else (reading["x"], reading["y"])
        color = "yellow" if i < sensor.ray_count else "cyan"
        ax.plot([sx, hx], [sy, hy], color=color, linewidth=1)
        ax.plot([hx, ex], [hy, ey], color="black", linewidth=1)


# ──────────────────────────────────────────────────────────────────────────────
# Evolution statistics chart
# ──────────────────────────────────────────────────────────────────────────────

def save_evolution_chart(stats: list, base: str = SAVE_DIR,
                         filename: str = "evolution.png"):
    """
    Plot best/mean fitness and best distance (left axis) and traffic cars
    passed (right axis) across all generations.
    """
    if not stats:
        return
    gens     = [s["generation"]    for s in stats]
    best     = [s["best_fitness"]  for s in stats]
    mean     = [s["mean_fitness"]  for s in stats]
    distance = [s["best_distance"] for s in stats]
    passed   = [s["cars_passed"]   for s in stats]

    fig, ax1 = plt.subplots(figsize=(12, 5), dpi=100)
    fig.patch.set_facecolor("#111111")
    ax1.set_facecolor("#111111")

    ax1.plot(gens, best, color="#44FF44", linewidth=1.2,
             label="Best fitness", zorder=3)
    ax1.plot(gens, mean, color="#44FF44", linewidth=0.8, alpha=0.5,
             linestyle=":", label="Mean fitness", zorder=2)
    ax1.plot(gens, distance, color="#4499FF", linewidth=1.0,
             label="Best distance", zorder=2)
    ax1.set_ylabel("Score / distance", color="white")
    ax1.tick_params(axis="both", colors="white")
    ax1.set_xlabel("Generation", color="white")

    ax2 = ax1.twinx()
    ax2.plot(gens, passed, color="#FF8800", linewidth=1.0,
             linestyle="--", label="Cars passed", zorder=2)
    ax2.set_ylabel("Traffic cars passed", color="white")
    ax2.set_ylim(0, max(passed) * 1.1 + 1)
    ax2.tick_params(colors="white")

    for spine in ax1.spines.values():
        spine.set_edgecolor("#444444")

    lines1, labels1 = ax1.get_legend_handles_labels()
    lines2, labels2 = ax2.get_legend_handles_labels()
    ax1.legend(lines1 + lines2, labels1 + labels2,
               facecolor="#222222", labelcolor="white",
               loc="upper left", fontsize=8)

    ax1.set_title("Training Progress", color="white", fontsize=12)
    plt.tight_layout()
    path = os.path.join(base, "charts", filename)
    plt.savefig(path, dpi=100, bbox_inches="tight",
                facecolor=fig.get_facecolor())
    plt.close(fig)
    return path


# ──────────────────────────────────────────────────────────────────────────────
# Neural network diagram
# ──────────────────────────────────────────────────────────────────────────────

def _input_labels(n_inputs: int) -> dict:
    half = n_inputs // 2
    labels = {}
    for i in range(half):
        kind = "F" if i < RAY_COUNT else "B"
        labels[i] = f"prox {kind}{i}"
        labels[half + i] = f"angle {kind}{i}"
    return labels


def save_network_diagram(network, generation: int, label: str = "",
                         base: str = SAVE_DIR):
    """
    Draw the network as a layered graph, inputs on the left.
    Green edges = positive weights, red = negative; width ∝ |weight|.
    Node colour shows the bias (threshold) sign.
    """
    shape = network.shape
    if not shape:
        return

    node_pos = {}
    n_layers = len(shape)
    for layer, count in enumerate(shape):
        x = layer / max(1, n_layers - 1)
        for idx in range(count):
            node_pos[(layer, idx)] = (x, (idx + 1) / (count + 1))

    fig, ax = plt.subplots(figsize=(10, 8), dpi=100)
    fig.patch.set_facecolor("#111111")
    ax.set_facecolor("#111111")
    ax.axis("off")
    ax.set_xlim(-0.2, 1.2)
    ax.set_ylim(-0.02, 1.05)

    for li, level in enumerate(network.levels):
        for i in range(level.input_count):
            x1, y1 = node_pos[(li, i)]
            for j in range(level.output_count):
                x2, y2 = node_pos[(li + 1, j)]
                w = float(level.weights[i, j])
                color = "#44FF44" if w >= 0 else "#FF4444"
                ax.plot([x1, x2], [y1, y2], color=color,
                        lw=0.2 + min(2.0, abs(w)), alpha=0.35, zorder=1)

    in_labels = _input_labels(shape[0])
    for (layer, idx), (x, y) in node_pos.items():
        if layer == 0:
            color = "#4499FF"
        else:
            b = float(network.levels[layer - 1].biases[idx])
            color = "#44FF44" if b < 0 else "#FF88AA"
        ax.add_patch(plt.Circle((x, y), 0.012, color=color, zorder=3))
        if layer == 0:
            ax.text(x - 0.02, y, in_labels.get(idx, f"I{idx}"), color="white",
                    fontsize=5.5, ha="right", va="center", zorder=4)
        elif layer == n_layers - 1:
            ax.text(x + 0.02, y, OUTPUT_LABELS.get(idx, f"O{idx}"), color="white",
                    fontsize=8, ha="left", va="center", zorder=4)

    ax.set_title(f"Gen {generation} — Brain of {label}  {shape}",
                 color="white", fontsize=10, pad=4)

    path = os.path.join(base, "neural", f"gen_{generation:06d}_{label}.png")
    plt.savefig(path, dpi=100, bbox_inches="tight",
                facecolor=fig.get_facecolor())
    plt.close(fig)
    return path


# ──────────────────────────────────────────────────────────────────────────────
# CSV log
# ──────────────────────────────────────────────────────────────────────────────

def append_csv(stats: dict, base: str = SAVE_DIR):
    """Append one generation's stats to a CSV file."""
    if not LOG_CSV:
        return
    path = os.path.join(base, "training_log.csv")
    file_exists = os.path.isfile(path)
    with open(path, "a", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=list(stats.keys()))
        if not file_exists:
            writer.writeheader()
        writer.writerow(stats)
