# luminousfield

A small real-time 3D scene titled *The Luminous Field*. It draws a cubemap
skybox, a red/green/blue triangle and a purple butterfly that flaps its
wings, bobs up and down, and wanders about a 20 × 20 area, turning back
towards the centre when it strays past ±10 on X or Z. You look around with
a free-fly camera.

## Installing

```
pip install .
```

Running the scene needs a machine that can open an OpenGL 3.3
core-profile window through pyglet.

## Running

```
luminousfield
```

Options:

| Option          | Default                   | Meaning                         |
|-----------------|---------------------------|---------------------------------|
| `--width`       | `1280`                    | window width in pixels          |
| `--height`      | `720`                     | window height in pixels         |
| `--shader-dir`  | `shaders`                 | directory holding the shaders   |
| `--texture-dir` | `textures/skybox_cubemap` | directory holding skybox faces  |

The shader directory must hold `vertex_shader.vert`, `fragment_shader.frag`,
`skybox.vert`, `skybox.frag`, `butterfly.vert` and `butterfly.frag`. The
texture directory should hold `right.png`, `left.png`, `top.png`,
`bottom.png`, `front.png` and `back.png`.

If a skybox face can't be read, that face is filled with a single
cornflower-blue pixel, so the scene still shows. If a shader file can't be
read or fails to compile or link, the command logs the error and exits
with status 1; it also exits with status 1 if no suitable window can be
created. Progress is logged to standard error.

### Controls

| Input        | Action                                 |
|--------------|----------------------------------------|
| Mouse        | look around (pitch is held to ±89°)    |
| Scroll wheel | zoom (field of view from 1° to 90°)    |
| W / S        | move forward / backward                |
| A / D        | strafe left / right                    |
| Escape       | quit                                   |

## Using the pieces

The maths and the simulation don't need a window, so you can use them on
their own:

```python
from luminousfield.transforms import perspective, look_at, strip_translation
from luminousfield.camera import Camera
from luminousfield.butterfly import ButterflyState, build_butterfly_vertices

camera = Camera()
camera.on_scroll(5.0)              # zoom in: field of view 45° -> 40°
camera.on_mouse(640.0, 360.0)
view = camera.view_matrix()
projection = camera.projection_matrix(1280 / 720)

state = ButterflyState()
state.update(delta_time=0.016, elapsed=0.016)
model = state.model_matrix()
left, right = state.wing_angles()  # each in [0, 1], summing to 1

vertices = build_butterfly_vertices()   # x, y, z, r, g, b per vertex
```

Matrices are 4×4 numpy arrays acting on column vectors.

Other helpers:

- `luminousfield.shader.read_shader_sources` reads a vertex/fragment source
  pair and raises `ShaderError` if either file can't be read.
- `luminousfield.shader_manager.shader_paths` maps each scene shader name
  (`our`, `skybox`, `light`, `butterfly`) to the file paths it expects in a
  given directory.
- `luminousfield.skybox.load_face` loads one cube face image into a
  `CubemapFace`, falling back to cornflower blue on failure.
- `luminousfield.app.skybox_faces`, `triangle_vertices` and `cube_vertices`
  give the face paths and the vertex data the scene uses.

## What it does not do

There is no lighting: the `light` shader is loaded but nothing is drawn
with it, and the textured cube's vertex data is uploaded but not drawn.
There is a single butterfly, the scene has no settings file, and nothing
is saved between runs.