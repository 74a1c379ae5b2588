from scalargrad.engine import set_seed
from scalargrad.nn import MLP, mse

set_seed(4)
model = MLP(2, [5, 1])
batch = [([0, 0], 0), ([0, 1], 1), ([1, 0], 1), ([1, 1], 0)]
for epoch in range(1000):
    model.zero_grad()
    outputs = [model(xs)[0] for xs, _ in batch]
    expected = [exp for _, exp in batch]
    loss = mse(outputs, expected)
    loss.grad = 1.0
    loss.backward()
    model.update(0.05)
    if epoch % 100 == 0:
        print(f"...epoch {epoch:4d} loss {loss.data:.4f}")


print("params", [p.data for p in model.parameters()])
for xs, exp in batch:
    result = model(xs)[0]
    print(f"{xs} -> {result.data:.4f} (expected {exp})")
