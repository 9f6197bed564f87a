from numpy_conv import output_size


def count_operations(input_height, input_width, input_channels, num_filters, kernel_size,
                     stride=1, padding=0, sparsity=0):
    """Count the arithmetic a conv layer performs for one forward pass.

    Per output pixel and filter: k*k*C multiplications, (k*k - 1)*C additions
    inside the kernels, C - 1 additions to merge channels and one bias add.
    Zero weights (sparsity) turn a share of those into multiply/add by zero.
    """
    h, w = max(input_height, 0), max(input_width, 0)
    c, f = max(input_channels, 0), max(num_filters, 0)
    k = max(kernel_size, 0)
    stride = stride if stride >= 1 else 1
    padding = max(padding, 0)
    sparsity = min(max(sparsity, 0), 99)

    out_h = output_size(h, k, stride, padding)
    out_w = output_size(w, k, stride, padding)

    if out_h <= 0 or out_w <= 0:
        return {
            'output_shape': None,
            'mults': 0,
            'adds': 0,
            'breakdown': {'intra_kernel': 0, 'channel_merge': 0, 'bias': 0},
            'total_ops': 0,
            'zero_ops': {'mults': 0, 'adds': 0, 'total': 0},
        }

    map_pixels = out_h * out_w * f

    mults = map_pixels * k * k * c
    intra_kernel = map_pixels * (k * k - 1) * c
    channel_merge = map_pixels * max(0, c - 1)
    bias = map_pixels
    adds = intra_kernel + channel_merge + bias

    zero_mults = mults * sparsity / 100
    # every zero weight also contributes a "+ 0"
    zero_adds = zero_mults

    return {
        'output_shape': (out_h, out_w, f),
        'mults': mults,
        'adds': adds,
        'breakdown': {'intra_kernel': intra_kernel, 'channel_merge': channel_merge, 'bias': bias},
        'total_ops': mults + adds,
        'zero_ops': {'mults': zero_mults, 'adds': zero_adds, 'total': zero_mults + zero_adds},
    }


def format_count(num):
    if num >= 1e9:
        return f"{num / 1e9:.2f} B"
    if num >= 1e6:
        return f"{num / 1e6:.2f} M"
    if num >= 1e3:
        return f"{num / 1e3:.2f} k"
    if num == int(num):
        return f"{int(num):,}"
    return f"{num:,.2f}"
