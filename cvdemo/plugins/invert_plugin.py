"""Invert: bitwise NOT of every byte."""
import cv2


class InvertPlugin:

    def name(self):
        return "Invert"

    def edit(self, input, output):
        output[...] = cv2.bitwise_not(input)


plugin = InvertPlugin()
