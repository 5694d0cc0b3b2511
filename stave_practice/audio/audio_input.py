"""Live audio capture using the sounddevice library."""

from __future__ import annotations
import numpy as np
import sounddevice as sd
from typing import Optional, Dict, Any, List, ClassVar

from ..errors import AudioPermissionError
from ..logger import get_logger
from ..core.interfaces import IAudioCapture
from .buffer import SampleRingBuffer

logger = get_logger(__name__)


class SoundDeviceCapture(IAudioCapture):
    """Owns the input stream and the circular buffer the pitch sampler reads."""

    # Audio configuration
    SAMPLE_RATE: ClassVar[int] = 44100  # Hz
    WINDOW_SIZE: ClassVar[int] = 2048  # Samples handed to the pitch estimator
    FRAMES_PER_BUFFER: ClassVar[int] = 512  # Frames per stream callback
    CHANNELS: ClassVar[int] = 1  # Mono audio
    FALLBACK_RATES: ClassVar[List[int]] = [44100, 48000, 22050, 16000]

    def __init__(
        self,
        device_id: Optional[int] = None,
        sample_rate: Optional[int] = None,
        window_size: Optional[int] = None,
        frames_per_buffer: Optional[int] = None,
        channels: Optional[int] = None,
    ) -> None:
        """Initialize the capture service.

        Args:
            device_id: Audio input device ID, or None for the system default
            sample_rate: Preferred sample rate in Hz, or None for default (44100)
            window_size: Samples per analysis window, or None for default (2048)
            frames_per_buffer: Stream block size, or None for default (512)
            channels: Number of channels to open, or None for default (1)
        """
        self._device_id = device_id
        self._sample_rate = sample_rate or self.SAMPLE_RATE
        self._window_size = window_size or self.WINDOW_SIZE
        self._frames_per_buffer = frames_per_buffer or self.FRAMES_PER_BUFFER
        self._channels = channels or self.CHANNELS

        self._buffer = SampleRingBuffer(self._window_size)
        self._stream: Optional[sd.InputStream] = None

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def window_size(self) -> int:
        return self._window_size

    def is_acquired(self) -> bool:
        return self._stream is not None

    def acquire(self) -> None:
        """Open the input stream, trying fallback sample rates if needed.

        Raises:
            AudioPermissionError: If no stream could be opened
        """
        if self._stream is not None:
            logger.warning("Audio input already acquired")
            return

        # Make sure the requested rate is tried first
        rates = [self._sample_rate] + [
            r for r in self.FALLBACK_RATES if r != self._sample_rate
        ]

        last_error: Optional[Exception] = None
        for rate in rates:
            stream = None
            try:
                logger.info(f"Trying to open audio input at {rate} Hz")
                stream = sd.InputStream(
                    device=self._device_id,
                    samplerate=rate,
                    blocksize=self._frames_per_buffer,
                    channels=self._channels,
                    dtype="float32",
                    callback=self._audio_callback,
                )
                stream.start()
            except (sd.PortAudioError, ValueError) as e:
                logger.warning(f"Failed to open audio input at {rate} Hz: {e}")
                last_error = e
                if stream is not None:
                    stream.close()
                continue

            self._sample_rate = rate
            self._buffer.clear()
            self._stream = stream
            logger.info(
                f"Audio input acquired: device={self._device_id}, rate={rate} Hz, "
                f"window={self._window_size}"
            )
            return

        raise AudioPermissionError(
            f"Could not open audio input device {self._device_id}: {last_error}"
        )

    def release(self) -> None:
        """Stop and close the input stream. Does nothing if not acquired."""
        stream, self._stream = self._stream, None
        if stream is None:
            return

        try:
            stream.stop()
        finally:
            stream.close()
            self._buffer.clear()
            logger.info("Audio input released")

    def latest_window(self) -> Optional[np.ndarray]:
        if self._stream is None:
            return None
        return self._buffer.snapshot()

    def _audio_callback(
        self,
        indata: np.ndarray,
        _frames: int,
        _time_info,
        status: sd.CallbackFlags,
    ) -> None:
        """Copy the newest block into the ring buffer.

        Note:
            This is called from the PortAudio thread, so it only copies data.
        """
        if status:
            logger.debug(f"Audio callback status: {status}")

        # Extract mono audio data (take first channel if multi-channel)
        audio_data = indata[:, 0] if indata.ndim > 1 else indata
        self._buffer.write(audio_data)


def list_input_devices() -> List[Dict[str, Any]]:
    """Return the input-capable audio devices known to PortAudio."""
    devices = []
    for i, device in enumerate(sd.query_devices()):
        if device["max_input_channels"] > 0:
            devices.append(
                {
                    "id": i,
                    "name": device["name"],
                    "channels": device["max_input_channels"],
                    "default_samplerate": device["default_samplerate"],
                }
            )
    return devices
