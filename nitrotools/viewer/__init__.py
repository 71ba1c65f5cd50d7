"""Camera, frame-rate counter and settings for a model viewer."""