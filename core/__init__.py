"""
Core module for the Catwatch Node pipeline.

Contains the typed messages, the frame decoder, tensor builder and
decision mapper, the event bus, the pipeline stages and the protocol
definitions for cameras, inference engines and displays.
"""
