#!/usr/bin/env python3
import os, json, sys
sys.path.insert(0, os.getcwd())
from roadmap.services.graph_loader import load_graph_document
from roadmap.orchestration.roadmap_engine import RoadmapEngine
from roadmap.orchestration.plan_generator import PlanGenerator
from pathlib import Path

DATA_PATH = sys.argv[1] if len(sys.argv) > 1 else os.path.join(os.getcwd(), 'data', 'sample-roadmap.json')
SEQUENCE = sys.argv[2:] or ['sol-tracing', 'sol-flags']
OUTPUT_DIR = os.path.join(os.getcwd(), 'scripts', 'output')
Path(OUTPUT_DIR).mkdir(parents=True, exist_ok=True)

print('Loading roadmap from', DATA_PATH)
document = load_graph_document(DATA_PATH)
engine = RoadmapEngine(document)
planner = PlanGenerator(engine)

print('Computing metrics...')
metrics = engine.compute_all_metrics()
plan = planner.build_plan_of_attack(metrics)
capacity = planner.build_capacity_plan(metrics=metrics)
critical = engine.find_critical_path()

print('Simulating completion of', SEQUENCE)
what_if = engine.clone()
sequence = what_if.simulate_sequence(SEQUENCE)

summary = {
    'graph': engine.get_graph_summary(),
    'top_priorities': [{'id': m.id, 'priority': round(m.priority_score, 3)} for m in plan.top_priorities],
    'quick_wins': [m.id for m in plan.quick_wins],
    'critical_risks': [m.id for m in plan.critical_risks],
    'critical_path': {'path': critical.path, 'total_effort': critical.total_effort},
    'cycles': engine.find_cycles(),
    'clusters': engine.find_clusters(),
    'capacity_plan': [
        {
            'initiative': p.initiative.id,
            'cross_pillar_count': p.cross_pillar_count,
            'problems': [{'problem': pp.problem.id, 'start_with': pp.start_with.id if pp.start_with else None} for pp in p.problems],
        }
        for p in capacity
    ],
    'simulation': {
        'impacts': [i.to_dict() for i in sequence.impacts],
        'not_found': sequence.not_found,
        'already_completed': sequence.already_completed,
        'before': sequence.initial_snapshot.to_dict(),
        'after': sequence.final_snapshot.to_dict(),
        'effort_reduction': sequence.effort_reduction,
    },
}
print('Summary:', json.dumps(summary['graph'], indent=2))
out_path = os.path.join(OUTPUT_DIR, 'roadmap_demo_snapshot.json')
with open(out_path, 'w') as fh:
    json.dump(summary, fh, indent=2)
print('Snapshot saved to', out_path)
