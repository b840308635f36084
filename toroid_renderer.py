import logging
import sys
import time

import numpy as np

from toroid_math import CompositeRotation, Vector3
from toroid_surface import generate_toroid

logger = logging.getLogger(__name__)

WIDTH = 150
HEIGHT = 80
OUTER_RADIUS = 3.0
INNER_RADIUS = 1.8
CAMERA_OFFSET = 10.0
FRAME_DELAY = 0.1       # seconds
ANGLE_STEP = 0.1        # radians per frame, all three axes
LIGHT_DIRECTION = (0.0, 1.0, -1.0)
LUMINANCE_CHARS = ".,-~:;=!*#$@"    # darkest to brightest
LUMINANCE_SCALE = 8.0

CURSOR_HOME = "\033[H"
HIDE_CURSOR = "\033[?25l"
SHOW_CURSOR = "\033[?25h"


def luminance_index(level, ramp_length=len(LUMINANCE_CHARS)):
    """
    Map a shading level to a position on the luminance ramp.

    Levels at or below zero give 0, positive levels are truncated and
    clamped to the last character.

    Args:
        level (float):
            ``dot(normal, light) * 8``.
        ramp_length (int):
            Number of characters on the ramp.

    Returns:
        int
    """
    if not level > 0:
        return 0
    return min(int(level), ramp_length - 1)


def luminance_indices(levels, ramp_length=len(LUMINANCE_CHARS)):
    """
    Vectorised ``luminance_index``.

    Args:
        levels (np.ndarray of shape (N,))

    Returns:
        np.ndarray of shape (N,) and integer dtype
    """
    levels = np.asarray(levels)
    indices = np.where(levels > 0, np.floor(levels), 0)
    return np.clip(indices, 0, ramp_length - 1).astype(np.intp)



class FrameBuffers:
    def __init__(self, width, height):
        """
        Character and depth buffers for one frame.

        Both buffers are flat, cell ``(row, col)`` lives at
        ``row * width + col``. Depth holds inverse depth, 0.0 means
        nothing has been drawn there yet.

        Args:
            width (int):
                Columns.
            height (int):
                Rows.

        Raises:
            ValueError:
                If either dimension is not positive.
        """
        if width < 1 or height < 1:
            raise ValueError(f"Frame buffers need a positive size, got {width}x{height}")
        self.width = width
        self.height = height
        self.chars = np.full(width * height, fill_value=" ", dtype="<U1")
        self.depth = np.zeros(width * height, dtype=np.float32)


    def reset(self):
        """
        Blank every cell and zero the depth buffer for the next frame.
        """
        self.chars[:] = " "
        self.depth[:] = 0.0


    def index(self, row, col):
        """
        Return the flat offset of cell ``(row, col)``.

        Args:
            row (int):
                Row, 0 at the top.
            col (int):
                Column, 0 on the left.

        Returns:
            int

        Raises:
            IndexError:
                If the cell lies outside the frame.
        """
        if not (0 <= row < self.height and 0 <= col < self.width):
            raise IndexError(f"Cell ({row}, {col}) outside {self.width}x{self.height} frame")
        return row * self.width + col


    def char_at(self, row, col):
        """
        Return the character drawn at ``(row, col)``.
        """
        return str(self.chars[self.index(row, col)])


    def depth_at(self, row, col):
        """
        Return the inverse depth stored at ``(row, col)``, 0.0 when empty.
        """
        return float(self.depth[self.index(row, col)])


    def to_text(self):
        """
        Serialise the character buffer row by row.

        Returns:
            str:
                Every row followed by a newline.
        """
        rows = self.chars.reshape(self.height, self.width)
        return "".join("".join(row) + "\n" for row in rows)



class AnimationState:
    def __init__(self, width, height):
        """
        Mutable per-animation state: rotation angles and frame buffers.
        """
        self.angle_x = 0.0
        self.angle_y = 0.0
        self.angle_z = 0.0
        self.frame = 0
        self.buffers = FrameBuffers(width, height)


    def rotation(self):
        """
        Build the rotation for the current angles.

        Returns:
            CompositeRotation:
                Y, then X, then Z.
        """
        return CompositeRotation.from_angles(self.angle_x, self.angle_y, self.angle_z)


    def advance(self, step):
        """
        Add ``step`` radians to all three angles and count the frame.

        Args:
            step (float):
                Angle increment in radians.
        """
        self.angle_x += step
        self.angle_y += step
        self.angle_z += step
        self.frame += 1



class Renderer():
    def __init__(
        self,
        width=WIDTH,
        height=HEIGHT,
        outer_radius=OUTER_RADIUS,
        inner_radius=INNER_RADIUS,
        camera_offset=CAMERA_OFFSET,
        light_direction=LIGHT_DIRECTION,
        luminance_chars=LUMINANCE_CHARS):
        """
        Project, depth-test and shade rotated toroid samples.

        Args:
            width (int):
                Screen width in characters.
            height (int):
                Screen height in characters.
            outer_radius (float):
                Toroid radius, only used to derive the scale factor.
            inner_radius (float):
                Tube radius, only used to derive the scale factor.
            camera_offset (float):
                Added to every rotated z before inverting it, keeps depth
                positive for the toroid.
            light_direction (sequence of 3 floats | Vector3):
                Light vector. It is not normalised.
            luminance_chars (str):
                Shading ramp, darkest first.

        Raises:
            ValueError:
                On a non-positive dimension, radius or camera offset,
                or an empty luminance ramp.
        """
        if width < 1 or height < 1:
            raise ValueError(f"Screen size must be positive, got {width}x{height}")
        if outer_radius <= 0 or inner_radius <= 0:
            raise ValueError("Toroid radii must be positive")
        if camera_offset <= 0:
            raise ValueError(f"Camera offset must be positive, got {camera_offset}")
        if not luminance_chars:
            raise ValueError("Luminance ramp is empty")

        self.width = width
        self.height = height
        self.outer_radius = outer_radius
        self.inner_radius = inner_radius
        self.camera_offset = camera_offset
        if isinstance(light_direction, Vector3):
            self.light_direction = light_direction.as_array()
        else:
            self.light_direction = np.array(light_direction, dtype=np.float32)
        self.luminance_chars = np.array(list(luminance_chars), dtype="<U1")


    @property
    def size(self):
        """
        Scale factor fitting the toroid to the screen width.
        """
        return (self.width * self.camera_offset) / (8.0 * (self.inner_radius + self.outer_radius))


    def new_state(self):
        """
        Create an animation state sized to this renderer's screen.

        Returns:
            AnimationState
        """
        return AnimationState(self.width, self.height)


    def draw_samples(self, points, normals, rotation, buffers):
        """
        Rotate, project and depth-test samples into ``buffers``.

        The result equals drawing the samples one by one in array order:
        a sample lands only if its depth is strictly greater than the depth
        already stored in its cell, so among equally near samples the
        earliest one stays.

        Args:
            points (np.ndarray of shape (N, 3)):
                Sample positions.
            normals (np.ndarray of shape (N, 3)):
                Sample normals, matching ``points``.
            rotation (CompositeRotation | Rotation):
                Applied to both points and normals.
            buffers (FrameBuffers):
                Mutated in place, must match the renderer's screen size.

        Returns:
            int:
                Number of cells written.

        Raises:
            ValueError:
                If ``buffers`` has a different size than the screen.
        """
        if (buffers.width, buffers.height) != (self.width, self.height):
            raise ValueError(
                f"Buffers are {buffers.width}x{buffers.height}, screen is {self.width}x{self.height}")

        rotated_points = rotation.apply_array(np.asarray(points, dtype=np.float32))
        rotated_normals = rotation.apply_array(np.asarray(normals, dtype=np.float32))

        dtype = rotated_points.dtype
        width = dtype.type(self.width)
        height = dtype.type(self.height)
        size = dtype.type(self.size)

        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            depth = dtype.type(1.0) / (rotated_points[:, 2] + dtype.type(self.camera_offset))
            screen_x = width / 2 + rotated_points[:, 0] * 2 * size * depth
            screen_y = (height / 2 + 1) - rotated_points[:, 1] * size * depth

            # NaN and inf fail these comparisons and are dropped with the rest
            visible = (screen_x >= 0) & (screen_x < width) & (screen_y >= 0) & (screen_y < height)

        candidates = np.flatnonzero(visible)
        if len(candidates) == 0:
            return 0

        cells = screen_y[candidates].astype(np.intp) * self.width + screen_x[candidates].astype(np.intp)

        # Per cell: nearest first, then earliest
        order = np.lexsort((candidates, -depth[candidates], cells))
        sorted_cells = cells[order]
        first = np.ones(len(order), dtype=bool)
        first[1:] = sorted_cells[1:] != sorted_cells[:-1]

        winners = candidates[order[first]]
        winner_cells = sorted_cells[first]

        nearer = depth[winners] > buffers.depth[winner_cells]
        winners = winners[nearer]
        winner_cells = winner_cells[nearer]

        buffers.depth[winner_cells] = depth[winners]

        levels = (rotated_normals[winners] @ self.light_direction.astype(dtype)) * LUMINANCE_SCALE
        buffers.chars[winner_cells] = self.luminance_chars[luminance_indices(levels, len(self.luminance_chars))]

        return len(winners)


    def render_frame(self, surface, state):
        """
        Draw the whole surface with the state's current angles.

        Args:
            surface (ToroidSurface):
                Samples to draw.
            state (AnimationState):
                Supplies the angles and receives the frame.

        Returns:
            int:
                Number of cells written.
        """
        written = self.draw_samples(surface.points, surface.normals, state.rotation(), state.buffers)
        logger.debug("Frame %d: %d cells written", state.frame, written)
        return written



class AnimationDriver:
    def __init__(
        self,
        renderer,
        surface,
        output=None,
        frame_delay=FRAME_DELAY,
        angle_step=ANGLE_STEP,
        sleep=time.sleep):
        """
        Owns the animation loop and its state.

        Args:
            renderer (Renderer):
                Draws each frame.
            surface (ToroidSurface):
                Samples drawn every frame, never regenerated.
            output (file-like | None):
                Where frames are written. Defaults to ``sys.stdout``.
            frame_delay (float):
                Pause after each frame, in seconds.
            angle_step (float):
                Added to every angle after each frame.
            sleep (callable):
                Pacing function, takes seconds.

        Raises:
            ValueError:
                If ``frame_delay`` is negative.
        """
        if frame_delay < 0:
            raise ValueError(f"Frame delay cannot be negative, got {frame_delay}")
        self.renderer = renderer
        self.surface = surface
        self.output = output if output is not None else sys.stdout
        self.frame_delay = frame_delay
        self.angle_step = angle_step
        self.sleep = sleep
        self.state = renderer.new_state()


    def step(self):
        """
        Render, emit and pace one frame, then prepare the next one.
        """
        state = self.state
        self.renderer.render_frame(self.surface, state)

        self.output.write(state.buffers.to_text())
        self.output.flush()
        self.sleep(self.frame_delay)
        self.output.write(CURSOR_HOME)
        self.output.flush()

        state.advance(self.angle_step)
        state.buffers.reset()


    def run(self, max_frames=None):
        """
        Animate until interrupted, or for ``max_frames`` frames.

        The cursor is hidden while animating. Ctrl-C ends the loop.

        Args:
            max_frames (int | None):
                Frame limit, None runs forever.

        Returns:
            int:
                Frames drawn.
        """
        frames = 0
        logger.info("Animating %d samples on a %dx%d screen", len(self.surface), self.renderer.width, self.renderer.height)
        try:
            self.output.write(HIDE_CURSOR)
            while max_frames is None or frames < max_frames:
                self.step()
                frames += 1
        except KeyboardInterrupt:
            pass
        finally:
            self.output.write(SHOW_CURSOR)
            self.output.flush()
        logger.info("Stopped after %d frames", frames)
        return frames



def main():
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")
    renderer = Renderer()
    surface = generate_toroid(OUTER_RADIUS, INNER_RADIUS)
    AnimationDriver(renderer, surface).run()



if __name__ == "__main__":
    main()
