from scalargrad.engine import Value, add, mul, neg, square


class Module:

    def zero_grad(self):
        for p in self.parameters():
            p.zero_grad()

    def parameters(self):
        return []

    def update(self, alpha):
        for p in self.parameters():
            if p.requires_grad:
                p.data -= alpha * p.grad


class Neuron(Module):

    def __init__(self, nin, nonlin=True, ctx=None):
        self.w = [Value.random(ctx, requires_grad=True) for _ in range(nin)]
        self.b = Value.random(ctx, requires_grad=True)
        self.nonlin = nonlin

    def __call__(self, x):
        assert len(self.w) == len(x), f"input of size {len(x)} with {len(self.w)} weights"
        act = self.b
        for wi, xi in zip(self.w, x):
            act = act + wi*xi
        return act.relu() if self.nonlin else act

    def parameters(self):
        return self.w + [self.b]

    def __repr__(self):
        return f"{'ReLU' if self.nonlin else 'Linear'}Neuron({len(self.w)})"


class Layer(Module):

    def __init__(self, nin, nout, nonlin=True, ctx=None):
        self.neurons = [Neuron(nin, nonlin=nonlin, ctx=ctx) for _ in range(nout)]
        self.nin = nin
        self.nout = nout

    def __call__(self, x):
        return [n(x) for n in self.neurons]

    def parameters(self):
        return [p for n in self.neurons for p in n.parameters()]

    def __repr__(self):
        return f"Layer of [{', '.join(str(n) for n in self.neurons)}]"


class MLP(Module):

    def __init__(self, nin, nouts, ctx=None):
        sz = [nin] + nouts
        self.layers = [Layer(sz[i], sz[i+1], nonlin=i!=len(nouts)-1, ctx=ctx) for i in range(len(nouts))]
        self.nin = nin
        self.nouts = nouts

    def __call__(self, x):
        for layer in self.layers:
            x = layer(x)
        return x

    def parameters(self):
        return [p for layer in self.layers for p in layer.parameters()]

    def __repr__(self):
        return f"MLP of [{', '.join(str(layer) for layer in self.layers)}]"


def mse(outputs, targets):
    """ mean squared error of outputs against targets (numbers or Values) """
    assert len(outputs) == len(targets), f"{len(outputs)} outputs for {len(targets)} targets"
    assert outputs
    ctx = outputs[0]._ctx
    loss = None
    for out, target in zip(outputs, targets):
        if not isinstance(target, Value):
            target = Value(target, ctx=ctx)
        term = square(add(out, neg(target)))
        loss = term if loss is None else add(loss, term)
    return mul(loss, Value(1.0 / len(outputs), ctx=ctx))
