"""
flipwheel - Scroll wheel direction switcher for Windows mice

Lists the mice registered under the HID branch of the device tree, shows
whether each one scrolls normally or flipped, and toggles the FlipFlopWheel
setting for a chosen device.
"""

__version__ = "0.1.0"
