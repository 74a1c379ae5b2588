import random
import sys
import time

from scalargrad.data import NUM_DIGITS, load, one_hot, to_floats
from scalargrad.engine import Value, set_seed
from scalargrad.nn import MLP, mse

set_seed(1337)


def timer(lam, msg=""):
    print(msg, end=" ", flush=True)
    before = time.time()
    result = lam()
    after = time.time()
    delta = after - before
    print(f"({delta:.2f} s)")
    return result


def main(args):
    num_epochs = int(args[1]) if len(args) >= 2 else 100
    batch_size = int(args[2]) if len(args) >= 3 else 10
    num_training_images = int(args[3]) if len(args) >= 4 else -1
    alpha = 0.01

    db = timer(lambda: load("train-images-idx3-ubyte", "train-labels-idx1-ubyte"), "Loading images...")
    if num_training_images >= 0:
        db = db[:num_training_images]
    dim = db[0].width * db[0].height

    # the graph is built once over input leaves; each image only rewrites
    # their values and recomputes
    inp = [Value(0.) for _ in range(dim)]
    expected = [Value(0.) for _ in range(NUM_DIGITS)]
    model = timer(lambda: MLP(dim, [50, NUM_DIGITS]), "Building model...")
    loss = timer(lambda: mse(model(inp), expected), "Building graph...")
    timer(loss.topo, "Ordering graph...")

    print("Training...")
    for epoch in range(num_epochs):
        epoch_loss = 0.
        before = time.time()
        random.shuffle(db)
        batches = [db[i:i+batch_size] for i in range(0, len(db), batch_size)]
        for batch_idx, batch in enumerate(batches):
            print("   ", batch_idx, "of", len(batches))
            for im in batch:
                model.zero_grad()
                for e, v in zip(expected, one_hot(im.label)):
                    e.data = v
                for i, v in zip(inp, to_floats(im.pixels)):
                    i.data = v
                epoch_loss += loss.forward()
                loss.grad = 1.0
                loss.backward()
                model.update(alpha / len(batch))
        after = time.time()
        delta = after - before
        epoch_loss /= len(db)
        print(f"...epoch {epoch} loss {epoch_loss} took {delta:.2f} sec")
    return 0


if __name__ == '__main__':
    sys.exit(main(sys.argv))
