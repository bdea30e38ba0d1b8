"""
experiments/run_experiments.py

Experiment harness that loads the baseline config, applies scenario overrides,
runs one or more replications per scenario, and reports the customer
wait-time histogram plus KPIs with confidence intervals.
"""

from __future__ import annotations
import copy, logging, math, os
from statistics import mean, stdev
from typing import Callable, Dict, List

from scipy.stats import t

from counter_sim.config import ROOT, apply_overrides, load_cfg
from counter_sim.simulation import run_replication
from experiments.scenarios import SCENARIOS

log = logging.getLogger(__name__)

def mean_ci(values: List[float], confidence_level: float) -> tuple[float, float]:
    """Return (mean, half-width) using a t-distribution critical value."""
    if not values:
        return 0.0, 0.0
    mu = mean(values)
    n = len(values)
    if n < 2:
        return mu, 0.0
    level = min(max(confidence_level, 0.0), 0.999999)
    alpha = 1.0 - level
    tcrit = t.ppf(1 - alpha / 2.0, n - 1)
    half = tcrit * (stdev(values) / math.sqrt(n))
    return mu, float(half)

def series(results: List[Dict], extractor: Callable[[Dict], float]) -> List[float]:
    """Collect a numeric series from each replication result."""
    return [float(extractor(res)) for res in results]

def avg_nested(results: List[Dict], key: str) -> Dict[str, float]:
    """Average nested dictionaries (e.g., pool_utilization) across replications."""
    if not results:
        return {}
    totals: Dict[str, float] = {}
    for res in results:
        for subk, val in res.get(key, {}).items():
            totals[subk] = totals.get(subk, 0.0) + float(val)
    return {subk: totals[subk] / len(results) for subk in totals}

def _cell_label(row: Dict[str, float]) -> str:
    lo, hi = row["lower"], row["upper"]
    if math.isinf(lo):
        return f"       < {hi:6.2f}"
    if math.isinf(hi):
        return f"      >= {lo:6.2f}"
    return f"[{lo:6.2f}, {hi:6.2f})"

def print_histogram(res: Dict):
    """Print the wait-time histogram of one replication."""
    rows = res.get("wait_histogram", [])
    n = res.get("wait_count", 0)
    print(f"  Customer wait times (arrival -> payment), n={n}, "
          f"mean={res.get('wait_mean_minutes', 0.0):.2f}, sd={res.get('wait_stdev_minutes', 0.0):.2f}, "
          f"min={res.get('wait_min_minutes', 0.0):.2f}, max={res.get('wait_max_minutes', 0.0):.2f} min")
    peak = max((r["count"] for r in rows), default=0)
    for row in rows:
        bar = "#" * (int(round(40 * row["count"] / peak)) if peak else 0)
        pct = 100.0 * row["count"] / n if n else 0.0
        print(f"    {_cell_label(row)} {row['count']:6d} {pct:5.1f}% {bar}")

def plot_histogram(res: Dict, scenario_name: str):
    """Persist a PNG bar chart of the regular histogram cells."""
    rows = [r for r in res.get("wait_histogram", []) if not (math.isinf(r["lower"]) or math.isinf(r["upper"]))]
    if not rows:
        return None
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt
    overflow = res["wait_histogram"][-1]["count"]
    plt.figure(figsize=(9, 5))
    plt.bar([r["lower"] for r in rows], [r["count"] for r in rows],
            width=rows[0]["upper"] - rows[0]["lower"], align="edge", color="#2563eb", edgecolor="white")
    plt.xlabel("Wait time (minutes)")
    plt.ylabel("Customers")
    plt.title(f"{scenario_name}: customer wait times ({overflow} beyond {rows[-1]['upper']:g} min)")
    plt.grid(True, linestyle="--", alpha=0.4)
    out_dir = os.path.join(ROOT, "experiments", "output")
    os.makedirs(out_dir, exist_ok=True)
    safe_name = scenario_name.lower().replace(" ", "_")
    out_path = os.path.join(out_dir, f"{safe_name}_wait_histogram.png")
    plt.tight_layout()
    plt.savefig(out_path, dpi=160)
    plt.close()
    return out_path

def run_scenario(cfg: Dict, sc: Dict, replications: int) -> List[Dict]:
    sc_base_cfg = apply_overrides(cfg, sc["overrides"])
    scenario_seed = sc_base_cfg.get("sim", {}).get("seed", 0)
    results = []
    for rep in range(replications):
        sc_cfg = copy.deepcopy(sc_base_cfg)
        # Advance the seed per replication so replications stay iid.
        sc_cfg["sim"]["seed"] = scenario_seed + rep
        log.debug("scenario %s replication %d seed %d", sc["name"], rep, sc_cfg["sim"]["seed"])
        results.append(run_replication(sc_cfg))
    return results

def main():
    """Entry point: drive all scenarios and replications, report KPIs."""
    cfg = load_cfg()
    logging.basicConfig(level=cfg["sim"].get("log_level", "INFO"), format="%(message)s")
    exp_cfg = cfg.get("experiments", {})
    replications = max(1, int(exp_cfg.get("replications", 1)))
    confidence = float(exp_cfg.get("confidence_level", 0.95))
    level_pct = confidence * 100.0
    seed = cfg["sim"].get("seed", 0)

    for sc in SCENARIOS:
        results = run_scenario(cfg, sc, replications)
        wait = mean_ci(series(results, lambda r: r.get("wait_mean_minutes", 0.0)), confidence)
        served = mean_ci(series(results, lambda r: r.get("served", 0)), confidence)
        arrivals = mean_ci(series(results, lambda r: r.get("arrivals", 0)), confidence)
        cust_q = mean_ci(series(results, lambda r: r["avg_queue_wait_minutes"].get("customers", 0.0)), confidence)
        order_q = mean_ci(series(results, lambda r: r["avg_queue_wait_minutes"].get("orders", 0.0)), confidence)
        left = mean_ci(series(results, lambda r: sum(r.get("queue_length_at_end", {}).values())), confidence)
        utilizations = {k: round(v * 100.0, 1) for k, v in avg_nested(results, "pool_utilization").items()}

        print(f"Scenario: {sc['name']} (replications={replications}, {level_pct:.1f}% CI, "
              f"seeds {seed}-{seed + replications - 1}, stop={cfg['sim']['stop_minutes']} min)")
        print_histogram(results[0])
        print(f"  Arrivals: {arrivals[0]:.1f} ± {arrivals[1]:.1f}")
        print(f"  Served: {served[0]:.1f} ± {served[1]:.1f}")
        print(f"  Avg wait (arrival -> payment): {wait[0]:.2f} ± {wait[1]:.2f} min")
        print(f"  Avg time in customer line: {cust_q[0]:.2f} ± {cust_q[1]:.2f} min")
        print(f"  Avg time in order line: {order_q[0]:.2f} ± {order_q[1]:.2f} min")
        print(f"  Still waiting at stop: {left[0]:.1f} ± {left[1]:.1f}")
        print(f"  Server utilization (mean % busy): {utilizations}")
        if exp_cfg.get("plot_histogram"):
            path = plot_histogram(results[0], sc["name"])
            if path:
                print(f"  Histogram plot saved to: {path}")
        print("-")

if __name__ == "__main__":
    main()
