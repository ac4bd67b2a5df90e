from plantcare.hardware.camera.picam import PiCamera

__all__ = ["PiCamera"]
