# nitrotools

Readers for the binary 3D file formats of the Nitro SDK, which many Nintendo
DS games use. The package reads:

- models (MDL0 sections)
- joint animations (JNT0)
- pattern animations (PAT0)
- material animations (SRT0)

These sections can sit inside any of the container kinds BMD0, BTX0, BCA0,
BTP0 or BTA0. The package can also rebuild a skinning skeleton from the
symbolic matrices applied to a model's vertices.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Reading a container

```python
from nitrotools.util.cursor import Cursor
from nitrotools.nitro.container import read_container

with open("model.nsbmd", "rb") as f:
    container = read_container(Cursor(f.read()))

for model in container.models:
    print(model.name, len(model.objects), "objects")
for anim in container.animations:
    print(anim.name, anim.num_frames, "frames")
```

A `Container` has these fields:

- `stamp` and `file_size`
- lists `models`, `animations`, `patterns` and `mat_anims`

A container whose header is wrong raises `ParseError`. This covers an
unknown stamp, a bad byte-order mark, an unexpected header size and a file
size that is too small. A header cut short raises `TooShortError`, a
subclass of `ParseError`. Both classes come from `nitrotools.util.cursor`.

A section that cannot be read is skipped and logged. So is a single item
inside a section that cannot be read.

The individual readers take a `Cursor` and a `Name`. They can be called on
their own:

- `read_model` in `nitrotools.nitro.model`
- `read_animation` in `nitrotools.nitro.animation`
- `read_pattern` in `nitrotools.nitro.pattern`
- `read_mat_anim` in `nitrotools.nitro.material_animation`

## Models

A `Model` holds:

- `materials`: colours, culling flags, a UV matrix, and texture and palette
  names taken from the pairing tables
- `pieces`: raw GPU command bytes
- `objects`: the rest-pose TRS transforms, with `matrix` as a 4x4 array
- `inv_binds`: the inverse bind matrices
- `render_ops`: the parsed render commands (`LoadMatrix`, `StoreMatrix`,
  `MulObject`, `Skin`, `ScaleUp`, `ScaleDown`, `BindMaterial`, `Draw`)
- `up_scale` and `down_scale`

Matrices are numpy arrays.

## Sampling animations

- `TRSCurves.sample_at(frame)` returns the 4x4 object matrix for a frame.
- `PatternTrack.sample(frame)` returns the `(texture_idx, palette_idx)` pair
  in effect for a material at that frame.
- `MaterialTrack.eval_uv_mat(frame)` returns the 4x4 UV translation for a
  material.

## Skeletons

`nitrotools.skeleton.skeleton.build_skeleton` takes three arguments:

- a `VertexRecord`, which holds the symbolic matrices and, for each vertex,
  the index of the matrix applied to it
- the model, which supplies `inv_binds` and `name`
- the rest-pose object matrices

It returns a `Skeleton` with these parts:

- a joint `tree`
- its `root`
- per-vertex weights, read with `vert_weights(vi)` and sorted heaviest first
- each joint's `rest_world_to_local` (inverse bind) matrix

```python
from nitrotools.skeleton.symbolic_matrix import AMatrix, ObjectMatrix
from nitrotools.skeleton.skeleton import VertexRecord, build_skeleton

vr = VertexRecord()          # starts with the identity as matrix 0
m = AMatrix.one()
m *= ObjectMatrix(0)
vr.matrices.append(m)
vr.vertices += [1, 1]        # two vertices transformed by object 0

skel = build_skeleton(vr, model, [obj.matrix for obj in model.objects])
print(skel.vert_weights(0))
```

## Other modules

- `nitrotools.util`: bit fields (`bits`), fixed-point numbers (`fix16`,
  `fix32`), the byte `Cursor`, and small collections (`BiVec`, `BiMap`,
  `Tree`, `UniqueNamer`, `OutDir`).
- `nitrotools.nitro.name.Name`: the 16-byte NUL-padded names. Use
  `print_safe()` for a string of letters, digits and underscores only.
- `nitrotools.viewer`: the camera `Eye` (`model_view`, `move_by`,
  `free_look`) and `FpsCounter`. The `fps` module also defines the viewer
  settings: window size, background colour, perspective planes, field of
  view and frame rate.

## What the package does not do

- Texture and palette sections (TEX0) are skipped, and no image data is
  decoded.
- The GPU command blobs in a model's pieces are kept as bytes only. They are
  not run to produce vertices, so a `VertexRecord` has to be filled in by the
  caller.
- There is no rendering window, no file export and no command-line program.
  The viewer module only provides the camera and frame-rate helpers.