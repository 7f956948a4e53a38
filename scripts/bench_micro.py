"""Compare gradient-descent variants on a small dataset across seeds."""

from __future__ import annotations

import argparse
import csv
import json
import sys
import time
from pathlib import Path
from statistics import mean, pstdev

VARIANTS = ["constant", "halving"]


def _fmt_mu_sigma(vals):
    mu = mean(vals)
    sd = pstdev(vals) if len(vals) > 1 else 0.0
    return f"{mu:.4f} ± {sd:.4f}"


def _train_one(variant: str, *, dataset: str, seed: int, epochs: int, lr: float, batch: int, hidden: int):
    import numpy as np

    from neuronnet.core.activations import Logistic
    from neuronnet.core.initializers import Gaussian
    from neuronnet.core.network import NeuronNetwork
    from neuronnet.core.strategies import GRADIENT_DESCENTS
    from neuronnet.data.registry import get_dataset
    from neuronnet.training.costs import Quadratic
    from neuronnet.training.metrics import default_metrics
    from neuronnet.training.trainer import NetworkTrainer

    spec = get_dataset(dataset, seed=seed)
    d = spec.data_spec
    network = NeuronNetwork(
        np.random.default_rng(seed), Logistic(), Gaussian(), [d.d_in, hidden, d.d_out]
    )
    trainer = NetworkTrainer(
        network,
        Quadratic(),
        GRADIENT_DESCENTS.create(variant, learning_rate=lr),
        spec.training,
        spec.validation,
    )
    rng = np.random.default_rng(seed + 1)
    start = time.perf_counter()
    for _ in range(epochs):
        trainer.run_epoch(batch, rng)
    elapsed = time.perf_counter() - start
    metrics = trainer.validate(metric_names=default_metrics(d.task_type))
    return {
        "final_cost": float(metrics["cost"]),
        "final_acc": float(metrics.get("accuracy", float("nan"))),
        "seconds": elapsed,
    }


def main(argv=None):
    root = Path(__file__).resolve().parents[1]
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))

    ap = argparse.ArgumentParser(description=__doc__)
    ap.add_argument("--dataset", default="blobs")
    ap.add_argument("--seeds", nargs="+", type=int, default=[123, 124, 125])
    ap.add_argument("--epochs", type=int, default=20)
    ap.add_argument("--lr", type=float, default=1.0)
    ap.add_argument("--batch", type=int, default=10)
    ap.add_argument("--hidden", type=int, default=8)
    ap.add_argument("--out", type=str, default=".artifacts/bench")
    args = ap.parse_args(argv)

    out = Path(args.out)
    out.mkdir(parents=True, exist_ok=True)
    runs = []
    for variant in VARIANTS:
        for s in args.seeds:
            r = _train_one(
                variant,
                dataset=args.dataset,
                seed=s,
                epochs=args.epochs,
                lr=args.lr,
                batch=args.batch,
                hidden=args.hidden,
            )
            runs.append({"gradient_descent": variant, "seed": s, **r})
    (out / "results.jsonl").write_text("\n".join(json.dumps(x) for x in runs), encoding="utf-8")

    agg = {}
    for variant in VARIANTS:
        costs = [r["final_cost"] for r in runs if r["gradient_descent"] == variant]
        accs = [r["final_acc"] for r in runs if r["gradient_descent"] == variant]
        agg[variant] = {
            "n": len(costs),
            "final_cost_mu": mean(costs),
            "final_cost_sd": pstdev(costs) if len(costs) > 1 else 0.0,
            "final_acc_mu": mean(accs),
            "seconds_mu": mean(r["seconds"] for r in runs if r["gradient_descent"] == variant),
        }
    base_cost = agg["constant"]["final_cost_mu"]
    for variant in VARIANTS:
        agg[variant]["delta_cost_vs_constant"] = agg[variant]["final_cost_mu"] - base_cost

    csv_path = out / "bench_micro.csv"
    with csv_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        w.writerow(
            [
                "gradient_descent",
                "seeds",
                "epochs",
                "final_cost_mu",
                "final_cost_sd",
                "final_acc_mu",
                "delta_cost_vs_constant",
                "seconds_mu",
            ]
        )
        for variant in VARIANTS:
            a = agg[variant]
            w.writerow(
                [
                    variant,
                    a["n"],
                    args.epochs,
                    f"{a['final_cost_mu']:.4f}",
                    f"{a['final_cost_sd']:.4f}",
                    f"{a['final_acc_mu']:.4f}",
                    f"{a['delta_cost_vs_constant']:.4f}",
                    f"{a['seconds_mu']:.4f}",
                ]
            )

    md_path = out / "bench_micro.md"
    lines = [f"### Micro-Benchmark: gradient descent variants on `{args.dataset}`", ""]
    lines.append(
        f"- Seeds: `{args.seeds}`; Epochs: `{args.epochs}`; LR: `{args.lr}`; Batch: `{args.batch}`"
    )
    lines.append("")
    lines.append("| Variant | Final Cost (μ±σ) | Final Acc (μ±σ) | ΔCost vs Constant | Seeds | Epochs |")
    lines.append("|---|---:|---:|---:|---:|---:|")
    for variant in VARIANTS:
        fc = [r["final_cost"] for r in runs if r["gradient_descent"] == variant]
        fa = [r["final_acc"] for r in runs if r["gradient_descent"] == variant]
        lines.append(
            f"| {variant.upper()} | {_fmt_mu_sigma(fc)} | {_fmt_mu_sigma(fa)} | "
            f"{agg[variant]['delta_cost_vs_constant']:+.4f} | {agg[variant]['n']} | {args.epochs} |"
        )
    md_path.write_text("\n".join(lines), encoding="utf-8")
    print("Wrote:", csv_path, md_path)


if __name__ == "__main__":
    main()
