"""Simple pyramid-roof house wireframe, proof of concept.

Footprint 6m x 4m, walls 3m high, apex at 5m.
- 4 floor nodes, 4 wall-top nodes, 1 roof apex
- floor and wall-top perimeters, 4 vertical walls, 4 roof slopes
- a floor diagonal added through the resolver, then a crossing brace
  that gets split at a new junction

Layout (top view, X right, Z down):
   (0,0) -------- (6,0)
     |              |
     |    room      |
     |              |
   (0,4) -------- (6,4)
"""

from pathlib import Path

from wireframe_builder.models import Structure
from wireframe_builder.resolvers import resolve_new_line
from wireframe_builder.validators import CircuitBreaker, validate_and_observe

WIDTH = 6.0
DEPTH = 4.0
HEIGHT = 3.0
APEX = 5.0

house = Structure(name="Simple House")

# --- Nodes ---
corners = [(0, 0), (WIDTH, 0), (WIDTH, DEPTH), (0, DEPTH)]
floor = [house.add_node(x, 0, z).name for x, z in corners]
tops = [house.add_node(x, HEIGHT, z).name for x, z in corners]
apex = house.add_node(WIDTH / 2, APEX, DEPTH / 2).name

# --- Lines ---
for ring in (floor, tops):
    for a, b in zip(ring, ring[1:] + ring[:1]):
        house.add_line(a, b)
for f, t in zip(floor, tops):
    house.add_line(f, t)
for t in tops:
    house.add_line(apex, t)

# --- Floor diagonals (the second one crosses the first) ---
house = resolve_new_line(house, (floor[0], floor[2])).structure
result = resolve_new_line(house, (floor[1], floor[3]))
house = result.structure
print(f"🔀 {result.describe()}")

# --- Validate ---
breaker = CircuitBreaker()
decision = validate_and_observe(breaker, "example", house)
report = decision.report
if report.valid:
    print(f"✅ {report.message}")
else:
    print("⚠️  Validation issues:")
    for issue in report.issues:
        print(f"  [{issue.severity.value}] {issue.kind.value}: {issue.description}")

# --- Save ---
output = Path(__file__).parent / "output"
output_file = house.save(output / "simple_house.json")
print(f"📁 Saved to: {output_file}")
print(f"   Nodes: {house.node_count()}")
print(f"   Lines: {house.line_count()}")
