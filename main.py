from photo_pipeline.application import run

if __name__ == "__main__":
    run()
