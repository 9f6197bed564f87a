import logging

import streamlit as st
import matplotlib.pyplot as plt

from layer_state import (
    CONFIG_PATH,
    KERNEL_SIZES,
    LIMITS,
    ConvLayerModel,
    LayerConfig,
    load_config,
    save_config,
)
from numpy_conv import get_dimensions, pad_matrix
from op_counter import count_operations, format_count
from plots import plot_matrix_row


logging.basicConfig(level=logging.INFO, format='%(asctime)s %(name)s %(levelname)s %(message)s')

st.set_page_config(page_title="Conv Layer Visualizer", layout="wide")

st.markdown("""
<style>
    .main-header {font-size: 3rem; font-weight: 700; color: #1f77b4; margin-bottom: 0.5rem;}
    .subtitle {font-size: 1.2rem; color: #666; font-style: italic; margin-bottom: 2rem;}
    .info-box {background-color: #f0f8ff; padding: 1.5rem; border-radius: 10px;
               border-left: 5px solid #1f77b4; margin: 1rem 0; color: #333;}
    h1, h2, h3 {color: #1f77b4;}
    .stButton>button {border-radius: 20px; font-weight: 600; transition: all 0.3s;}
</style>
""", unsafe_allow_html=True)


def initialize_model():
    config = LayerConfig()
    try:
        config = load_config(CONFIG_PATH)
    except Exception as e:
        st.warning(f"Could not load saved configuration: {e}")
    return ConvLayerModel(config)


def persist_config(config):
    try:
        save_config(config, CONFIG_PATH)
    except OSError as e:
        st.warning(f"Could not save configuration: {e}")


def limited_input(label, field, value):
    low, high = LIMITS[field]
    return st.sidebar.number_input(label, min_value=low, max_value=high, value=value, step=1, key=f"cfg_{field}")


for key, default in [
    ('model', None),
    ('current_page', 'Layer Visualizer'),
]:
    if key not in st.session_state:
        st.session_state[key] = default

if st.session_state.model is None:
    st.session_state.model = initialize_model()

model = st.session_state.model
config = model.config

st.markdown('<h1 class="main-header">Conv Layer Visualizer</h1>', unsafe_allow_html=True)
st.markdown('<p class="subtitle">How one convolutional layer turns an input volume into feature maps</p>', unsafe_allow_html=True)

# sidebar: layer configuration
st.sidebar.markdown("## Input Volume")
height = limited_input("Height", 'input_height', config.input_height)
width = limited_input("Width", 'input_width', config.input_width)
channels = limited_input("Channels (Depth)", 'input_channels', config.input_channels)

st.sidebar.markdown("---")
st.sidebar.markdown("## Convolution Layer")
kernel_size = st.sidebar.radio(
    "Kernel Size",
    KERNEL_SIZES,
    index=KERNEL_SIZES.index(config.kernel_size),
    format_func=lambda k: f"{k}×{k}",
    horizontal=True,
    key="cfg_kernel_size",
)
num_filters = limited_input("Filters", 'num_filters', config.num_filters)
stride = limited_input("Stride", 'stride', config.stride)
padding = limited_input("Padding", 'padding', config.padding)
sparsity = st.sidebar.slider("Sparsity (%)", min_value=LIMITS['sparsity'][0], max_value=LIMITS['sparsity'][1],
                             value=config.sparsity, key="cfg_sparsity")

changes = {
    'input_height': height,
    'input_width': width,
    'input_channels': channels,
    'num_filters': num_filters,
    'kernel_size': kernel_size,
    'stride': stride,
    'padding': padding,
    'sparsity': sparsity,
}
if changes != config.to_dict():
    model.update_config(**changes)
    persist_config(model.config)
    config = model.config

if st.sidebar.button("Regenerate Data", use_container_width=True):
    model.regenerate()

st.sidebar.markdown("---")
page = st.sidebar.radio(
    "Navigation",
    ["Layer Visualizer", "Operations Calculator"],
    index=0 if st.session_state.current_page == "Layer Visualizer" else 1
)
st.session_state.current_page = page

# page 1: visualizer
if page == "Layer Visualizer":
    outputs = model.outputs

    st.markdown("## Input Volume")
    padded_inputs = [pad_matrix(m, config.padding) for m in model.inputs]
    h, w = get_dimensions(padded_inputs[0]) if padded_inputs else (0, 0)
    st.caption(f"{config.input_channels} channel(s), {config.input_height}×{config.input_width}"
               + (f", padded to {h}×{w}" if config.padding else ""))
    fig = plot_matrix_row(padded_inputs, [f"ch {i}" for i in range(len(padded_inputs))],
                          cmap='Greys', padding=config.padding)
    st.pyplot(fig)
    plt.close(fig)

    st.markdown("## Filters")
    st.markdown(f'<div class="info-box">Each filter holds one {config.kernel_size}×{config.kernel_size} kernel '
                f'per input channel. Zero weights (from sparsity) are shown in red.</div>', unsafe_allow_html=True)
    for f in model.filters:
        st.markdown(f"**Filter {f.id}** (bias {f.bias:g})")
        fig = plot_matrix_row([k.weights for k in f.kernels],
                              [f"{f.id} / ch {i}" for i in range(len(f.kernels))], cmap='RdBu')
        st.pyplot(fig)
        plt.close(fig)

    st.markdown("## Partial Sums per Channel")
    for f, out in zip(model.filters, outputs):
        if not out.ok:
            st.warning(out.error)
            continue
        st.markdown(f"**Filter {f.id}**")
        fig = plot_matrix_row(out.intermediates,
                              [f"ch {i} * {f.id}" for i in range(len(out.intermediates))], cmap='Purples')
        st.pyplot(fig)
        plt.close(fig)

    st.markdown("## Output Feature Maps")
    if outputs and all(get_dimensions(out.final) == (0, 0) for out in outputs):
        st.info("Kernel is larger than the padded input, so the layer produces no output.")
    fig = plot_matrix_row([out.final for out in outputs],
                          [f"map {f.id}" for f in model.filters], cmap='Greens')
    st.pyplot(fig)
    plt.close(fig)

# page 2: calculator
elif page == "Operations Calculator":
    st.markdown("## Operations Calculator")
    st.markdown('<div class="info-box">Counts the arithmetic of a single conv layer. '
                'Independent of the visualizer settings, so larger layers can be explored.</div>',
                unsafe_allow_html=True)

    col1, col2, col3 = st.columns(3)
    with col1:
        calc_h = st.number_input("Input Height", min_value=0, value=32)
        calc_w = st.number_input("Input Width", min_value=0, value=32)
        calc_c = st.number_input("Channels", min_value=0, value=3)
    with col2:
        calc_f = st.number_input("Filters (K)", min_value=0, value=10)
        calc_k = st.number_input("Kernel Size", min_value=0, value=3)
        calc_s = st.number_input("Stride", min_value=1, value=1)
    with col3:
        calc_p = st.number_input("Padding", min_value=0, value=0)
        calc_sp = st.number_input("Sparsity (%)", min_value=0, max_value=99, value=0)

    results = count_operations(calc_h, calc_w, calc_c, calc_f, calc_k, calc_s, calc_p, calc_sp)

    st.divider()
    col1, col2 = st.columns(2)
    with col1:
        st.subheader("Output Shape")
        if results['output_shape'] is None:
            st.error("Invalid (<= 0)")
        else:
            out_h, out_w, out_f = results['output_shape']
            st.metric("Output Shape", f"{out_h} x {out_w} x {out_f}")

        st.subheader("Sparsity Impact")
        st.caption("Operations with zero (skipped)")
        st.metric("Zero Mults", format_count(results['zero_ops']['mults']))
        st.metric("Zero Adds", format_count(results['zero_ops']['adds']))
        st.metric("Total Zero Ops", format_count(results['zero_ops']['total']))
    with col2:
        st.subheader("Complexity")
        st.metric("Multiplications", format_count(results['mults']))
        st.metric("Total Additions", format_count(results['adds']))
        st.markdown(f"""
        - Intra-kernel sums: `{format_count(results['breakdown']['intra_kernel'])}`
        - Channel merge sums: `{format_count(results['breakdown']['channel_merge'])}`
        - Bias additions: `{format_count(results['breakdown']['bias'])}`
        """)
        st.metric("Total FLOPs (Approx)", format_count(results['total_ops']))

st.sidebar.markdown("---")
st.sidebar.markdown("""
<div style='text-align: center; color: #666; font-size: 0.9rem;'>
    <p><strong>Implementation Details</strong></p>
    <p>Pure NumPy • Single Forward Pass</p>
    <p>Educational Tool for Convolution Arithmetic</p>
</div>
""", unsafe_allow_html=True)
