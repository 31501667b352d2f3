# dronepath

Planning building blocks for multicopters:

- **Global planning costs** on a 3D cell grid. The cost of a path weighs
  distance, climbing and descending, turning, and the risk of flying through
  occupied or unexplored space.
- **Local planning helpers**. These find the vehicle's closest point on the
  mission line, build histogram images and obstacle distance ranges, and
  give a cruise speed that lets the vehicle stop within the sensor range.
- **A landing grid**. It is a square 2D grid that holds height mean,
  variance, point count and a landability flag per cell.

The only runtime dependency is `numpy`.

## Modules

| Module | What it holds |
| --- | --- |
| `dronepath.cell` | `Cell`, `GoalCell`, `angle_to_range` |
| `dronepath.node` | `Node`, a search node made of a cell and the cell it was reached from |
| `dronepath.grid` | `Grid`, the landing grid |
| `dronepath.planner` | `GlobalPlanner`, `PlannerConfig`, `PathInfo`, `Pose`, `next_yaw` |
| `dronepath.planner_node` | `PlannerNode`, `NodeConfig`: goals, waypoints, pose tracking and setpoints |
| `dronepath.local_planner` | `LocalPlanner`, `FOV`, `Px4Params`, `AvoidanceOutput` |
| `dronepath.mock_data` | `MockScene`, `create_wall`, `format_path` for a fixed test scene |

## Cells and nodes

A `Cell` is an integer index into a grid of cubes whose edge length is the
cell scale. A position is turned into a cell by flooring:

```python
from dronepath.cell import Cell, GoalCell, angle_to_range

cell = Cell.from_position(1.2, 3.4, 2.5, 1.0)   # Cell(1, 3, 2)
center = cell.center(1.0)          # (1.5, 3.5, 2.5)
around = cell.neighbors()          # 6 face neighbours, then the 4 XY diagonals
diag = cell.diagonal_neighbors()   # the 4 XY diagonals
wrapped = angle_to_range(7.0)      # angle brought into [-pi, pi)

goal = GoalCell.from_position(5.0, 5.0, 3.0, radius=2.0)
goal.within_position_radius((5.2, 5.1, 3.4))    # True
```

A `Node` joins a cell to its parent cell, so the cost of turning is known
during a search. `Node.cells` gives the grid cells swept by the move,
`Node.length` its length, and `Node.rotation` the number of 45-degree turns
between two moves, plus half a turn when changing between horizontal and
vertical movement.

## Global planner

`GlobalPlanner` keeps the current pose, the goal, the occupancy map and the
current path:

```python
from dronepath.cell import Cell, GoalCell
from dronepath.planner import GlobalPlanner, PlannerConfig

planner = GlobalPlanner(PlannerConfig(cell_scale=1.0))
planner.set_pose((0.5, 0.5, 3.5), yaw=0.0)
planner.set_goal(GoalCell(5, 0, 3))
planner.update_map({Cell(2, 0, 3): 2.0})   # log-odds per cell

risk = planner.cell_risk(Cell(2, 0, 3))
path = [Cell(0, 0, 3), Cell(1, 0, 3), Cell(2, 0, 3), Cell(3, 0, 3)]
info = planner.path_info(path)    # dist, risk, cost, smoothness, is_blocked
planner.set_path(path)
poses = planner.path_poses()      # one Pose per cell, facing the next cell
```

It also gives `edge_cost`, `heuristic` and its parts (`risk_heuristic`,
`smoothness_heuristic`, `altitude_heuristic`), `is_occupied`, `is_legal`,
`open_neighbors`, and `path_risks`. `go_back` makes the current path the way
flown so far, reversed, cut short at the first low-risk cell after the
fifth; `stop` makes the current position the goal and the whole path.

`PlannerNode` sits above the planner. It queues waypoints, sets a temporary
goal halfway along a long path, accepts goals from clicks or the flight
controller, records obstacle points, advances along the path as the vehicle
arrives, and works out the next position setpoint with `compute_setpoint`.

## Local planner helpers

```python
from dronepath.local_planner import LocalPlanner

local = LocalPlanner(max_sensor_range=15.0)
local.set_default_px4_parameters()
local.set_state((0, 0, 2), (0, 0, 0), yaw_deg=0.0, pitch_deg=0.0)
local.set_goal((10, 0, 2))
local.closest_point_on_line()
local.avoidance_output().cruise_velocity
```

`histogram_image` and `obstacle_distance_ranges` take a 30 x 60 distance
histogram (6-degree bins).

## Landing grid

```python
from dronepath.grid import Grid

grid = Grid(10.0, 1.0)      # 10 m wide grid of 1 m cells
grid.increase_counter((2, 3))
grid.set_mean((2, 3), 0.4)
grid.set_filter_limits((1.0, 2.0, 0.0))
grid.limits()               # ((-4.0, -3.0), (6.0, 7.0))
```

`Grid.combine` blends a previous grid into the current one with weight
`alpha`.

## What it does not do

- There is no path search: the package scores paths and gives heuristics,
  but does not itself find a path from start to goal.
- It does not talk to a vehicle, a camera or a message bus; the planner node
  and local planner are plain objects that you feed and query.
- The landing grid only stores statistics; there is no landing-site decision
  or landing state machine.
- It builds no occupancy map from sensor data; `update_map` takes log-odds
  you supply.

## Running the tests

Install the package with its `test` extra and run `pytest` from the project
root.